"""Capture entry point - turn a document into a self-contained snapshot."""

import asyncio
import logging

from ..config import ThemeConfig
from ..environment import EnvironmentService
from ..models import CaptureResult, Document
from ..network import ResourceFetcher
from .scroll import CaptureCache, ReplayScriptGenerator
from .serializer import TreeSerializer

logger = logging.getLogger(__name__)

DOCTYPE = "<!DOCTYPE html>"


async def capture(
    document: Document,
    fetcher: ResourceFetcher,
    environment: EnvironmentService,
    theme: ThemeConfig | None = None,
) -> str:
    """Capture a document as a static HTML string."""
    result = await capture_with_stats(document, fetcher, environment, theme)
    return result.html


async def capture_with_stats(
    document: Document,
    fetcher: ResourceFetcher,
    environment: EnvironmentService,
    theme: ThemeConfig | None = None,
) -> CaptureResult:
    """Capture a document and report what was inlined along the way."""
    cache = CaptureCache()
    serializer = TreeSerializer(document, fetcher, environment, theme)

    markup = await serializer.serialize(document.root, cache)
    script = ReplayScriptGenerator(document.root).generate(cache)

    stats = cache.stats
    logger.info(
        f"Captured snapshot: {stats.stylesheets_inlined} stylesheets, "
        f"{stats.images_inlined} images, {len(cache)} scroll positions"
    )
    return CaptureResult(html=f"{DOCTYPE}{markup}{script}", stats=stats, scroll_entries=len(cache))


def capture_sync(
    document: Document,
    fetcher: ResourceFetcher,
    environment: EnvironmentService,
    theme: ThemeConfig | None = None,
) -> str:
    """Run ``capture`` from synchronous code."""
    return asyncio.run(capture(document, fetcher, environment, theme))
