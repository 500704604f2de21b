"""Bounded HTML page fetcher built on httpx.

Downloads a page for the metadata and content extractors.  The response
body is streamed and abandoned once it passes ``fetch_max_bytes`` so a
huge or never-ending page cannot exhaust memory, and the whole request
is bounded by ``fetch_timeout_seconds``.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.page_fetcher import FetchedPage, IPageFetcher
from src.utils.errors import ExtractionError
from src.utils.url import normalize_url

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 8.0
_DEFAULT_MAX_BYTES = 10 * 1024 * 1024
_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36 linkvault/0.1"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

# Content types that are parsed as HTML.  A missing header is tolerated.
_HTML_TYPES = ("text/html", "application/xhtml+xml", "application/xml", "text/xml", "text/plain")


class HttpxPageFetcher(IPageFetcher):
    """Page fetcher backed by a shared ``httpx.AsyncClient``.

    An injected client is used as-is and left open on :meth:`close`; a
    client created here is owned and closed by this fetcher.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        max_bytes: int = _DEFAULT_MAX_BYTES,
    ) -> None:
        self._owns_client = http_client is None
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )

    async def fetch(self, url: str) -> FetchedPage:
        target = normalize_url(url)
        try:
            async with self._client.stream("GET", target, headers=_DEFAULT_HEADERS) as response:
                response.raise_for_status()
                content_type = response.headers.get("content-type", "").lower()
                if content_type and not content_type.startswith(_HTML_TYPES):
                    raise ExtractionError(
                        message=f"Unsupported content type {content_type!r} for {target}",
                        provider_name=self.get_provider_name(),
                    )

                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self._max_bytes:
                    raise ExtractionError(
                        message=f"Response for {target} exceeds {self._max_bytes} bytes",
                        provider_name=self.get_provider_name(),
                    )

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self._max_bytes:
                        raise ExtractionError(
                            message=f"Response for {target} exceeds {self._max_bytes} bytes",
                            provider_name=self.get_provider_name(),
                        )

                encoding = response.charset_encoding or "utf-8"
                final_url = str(response.url)
        except httpx.TimeoutException as exc:
            raise ExtractionError(
                message=f"Timeout fetching {target}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ExtractionError(
                message=f"HTTP {exc.response.status_code} for {target}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(
                message=f"HTTP error fetching {target}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            html = bytes(body).decode(encoding, errors="replace")
        except LookupError:
            html = bytes(body).decode("utf-8", errors="replace")

        logger.debug(
            "page_fetched",
            url=target,
            final_url=final_url,
            bytes=len(body),
        )
        return FetchedPage(
            url=target,
            final_url=final_url,
            html=html,
            content_type=content_type,
        )

    async def close(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "httpx_page_fetcher"
