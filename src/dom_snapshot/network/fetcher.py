"""Resource fetchers used to inline stylesheets and images."""

import asyncio
import logging
import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import FetchConfig
from ..errors import ResourceFetchFailure
from ..models import FetchedResource

logger = logging.getLogger(__name__)


class ResourceFetcher(ABC):
    """Abstract base class for fetching external resources."""

    @abstractmethod
    async def fetch_text(self, url: str) -> str:
        """
        Fetch a text resource such as a stylesheet.

        Raises:
            ResourceFetchFailure: if the resource cannot be retrieved
        """
        pass

    @abstractmethod
    async def fetch_bytes(self, url: str) -> FetchedResource:
        """
        Fetch a binary resource such as an image.

        Raises:
            ResourceFetchFailure: if the resource cannot be retrieved
        """
        pass


class HttpxFetcher(ResourceFetcher):
    """Fetch ``http(s)`` and, when allowed, ``file`` URLs.

    Use as an async context manager to share one connection pool across a
    capture; outside of one, each request opens its own client. Local files
    are only served when ``allow_files`` is set, which callers do for
    documents that were themselves loaded from disk.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        allow_files: bool = False,
    ):
        self.config = config or FetchConfig()
        self.allow_files = allow_files
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpxFetcher":
        self._client = self._make_client()
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_text(self, url: str) -> str:
        if _scheme(url) == "file":
            data = await self._read_file(url)
            return data.decode("utf-8", errors="replace")

        response = await self._get(url)
        return response.text

    async def fetch_bytes(self, url: str) -> FetchedResource:
        if _scheme(url) == "file":
            data = await self._read_file(url)
            return FetchedResource(content=data, media_type=mimetypes.guess_type(url)[0])

        response = await self._get(url)
        content_type = response.headers.get("content-type")
        media_type = content_type.split(";")[0].strip() if content_type else None
        return FetchedResource(content=response.content, media_type=media_type or None)

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout,
            follow_redirects=self.config.follow_redirects,
            headers={"User-Agent": self.config.user_agent},
            transport=self._transport,
        )

    async def _get(self, url: str) -> httpx.Response:
        """GET a URL, retrying transport errors."""
        if _scheme(url) not in ("http", "https"):
            raise ResourceFetchFailure(url, "unsupported URL scheme")

        logger.debug(f"Fetching {url}")
        client = self._client or self._make_client()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max(1, self.config.max_retries)),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await client.get(url)
            response.raise_for_status()
            return response
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ResourceFetchFailure(url, str(e) or type(e).__name__) from e
        finally:
            if client is not self._client:
                await client.aclose()

    async def _read_file(self, url: str) -> bytes:
        if not self.allow_files:
            raise ResourceFetchFailure(url, "local files are not served for this document")

        path = Path(url2pathname(urlparse(url).path))
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ResourceFetchFailure(url, str(e)) from e


def _scheme(url: str) -> str:
    try:
        return urlparse(url).scheme.lower()
    except ValueError as e:
        raise ResourceFetchFailure(url, f"malformed URL ({e})") from e


def is_file_url(url: str | None) -> bool:
    """Check if a document URL points at the local filesystem."""
    try:
        return bool(url) and urlparse(url).scheme.lower() == "file"
    except ValueError:
        return False
