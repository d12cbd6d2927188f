"""Inline external stylesheets and images into the snapshot."""

import asyncio
import base64
import logging
import mimetypes
from urllib.parse import urljoin, urlparse

from ..errors import ResourceFetchFailure
from ..models import CaptureStats, ElementNode
from ..network import ResourceFetcher
from .media_queries import MediaQueryFreezer

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


class StylesheetInliner:
    """Replace ``<link rel="stylesheet">`` with an embedded ``<style>`` block."""

    def __init__(self, fetcher: ResourceFetcher, freezer: MediaQueryFreezer):
        self.fetcher = fetcher
        self.freezer = freezer

    async def inline(
        self,
        element: ElementNode,
        base_url: str | None = None,
        stats: CaptureStats | None = None,
    ) -> str:
        """Fetch the linked stylesheet; a failed fetch contributes nothing."""
        stats = stats or CaptureStats()
        href = element.get("href")
        if not href:
            return ""

        try:
            url = resolve_url(base_url, href)
            text = await self.fetcher.fetch_text(url)
        except ResourceFetchFailure as e:
            logger.warning(f"Dropping stylesheet: {e}")
            stats.stylesheets_failed += 1
            return ""

        css, frozen = self.freezer.freeze_counted(text)
        stats.stylesheets_inlined += 1
        stats.media_queries_frozen += frozen
        return f"<style>{escape_brackets(css)}</style>"


class ImageInliner:
    """Replace image URLs with ``data:`` URIs."""

    def __init__(self, fetcher: ResourceFetcher):
        self.fetcher = fetcher

    async def inline(
        self,
        src: str,
        base_url: str | None = None,
        stats: CaptureStats | None = None,
    ) -> str:
        """Return a data URI for the image, or ``src`` unchanged on failure."""
        stats = stats or CaptureStats()
        if not src or src.startswith("data:"):
            return src

        try:
            url = resolve_url(base_url, src)
            resource = await self.fetcher.fetch_bytes(url)
        except ResourceFetchFailure as e:
            logger.warning(f"Keeping original image reference: {e}")
            stats.images_failed += 1
            return src

        media_type = resource.media_type or mimetypes.guess_type(urlparse(url).path)[0] or DEFAULT_MEDIA_TYPE
        payload = await asyncio.to_thread(_encode, resource.content)
        stats.images_inlined += 1
        return f"data:{media_type};base64,{payload}"


def escape_brackets(text: str) -> str:
    """Escape angle brackets so stylesheet text cannot close its ``<style>``."""
    return text.replace("<", "&lt;").replace(">", "&gt;")


def resolve_url(base_url: str | None, url: str) -> str:
    """Resolve a reference against the document URL.

    Raises:
        ResourceFetchFailure: if either URL is malformed
    """
    try:
        resolved = urljoin(base_url, url) if base_url else url
        urlparse(resolved)
    except ValueError as e:
        raise ResourceFetchFailure(url, f"malformed URL ({e})") from e
    return resolved


def _encode(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")
