"""Abstract base class for web page fetchers.

Both the metadata extractor and the content extractor read HTML through
this contract.  Implementations enforce a fetch timeout and a maximum
response size so an adversarial or oversized page cannot tie up the
event loop or exhaust memory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FetchedPage:
    """Raw HTML fetched from a URL.

    Attributes
    ----------
    url:
        The URL that was requested (after ``https://`` normalisation).
    final_url:
        The URL the response came from after redirects.
    html:
        Decoded response body.
    content_type:
        The response ``Content-Type`` header, lower-cased.
    """

    url: str
    final_url: str
    html: str
    content_type: str = ""


class IPageFetcher(ABC):
    """Contract for services that download HTML pages."""

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """Download *url* and return its HTML.

        Raises
        ------
        src.utils.errors.ExtractionError
            On timeout, transport error, non-2xx status, non-HTML content,
            or a body larger than the configured limit.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this fetcher."""
