"""Social-preview metadata extraction for saved links.

Reads the title and hero image a page advertises for link previews,
preferring Open Graph tags, then Twitter card tags, then the document
``<title>``.  The display domain comes from the URL alone so it is set
even when the page cannot be fetched.

Extraction never raises: any fetch or parse failure degrades to a
:class:`PageMetadata` with ``title`` and ``hero_image`` left as ``None``.
"""

from __future__ import annotations

from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from src.interfaces.page_fetcher import IPageFetcher
from src.models.record import PageMetadata
from src.utils.errors import ExtractionError
from src.utils.url import extract_domain, origin_of

logger = structlog.get_logger(logger_name=__name__)

# (attribute, value) pairs in preference order.
_TITLE_META = (("property", "og:title"), ("name", "twitter:title"))
_IMAGE_META = (
    ("property", "og:image"),
    ("name", "twitter:image"),
    ("name", "twitter:image:src"),
)


def _meta_content(soup: BeautifulSoup, candidates: tuple[tuple[str, str], ...]) -> str | None:
    """Return the first non-empty ``content`` among the candidate meta tags.

    Sites mix up ``property`` and ``name``, so each candidate is looked up
    under both attributes.
    """
    for attr, value in candidates:
        for lookup in (attr, "name" if attr == "property" else "property"):
            tag = soup.find("meta", attrs={lookup: value})
            if tag is None:
                continue
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return None


class MetadataExtractor:
    """Extracts title, hero image and domain from a URL."""

    def __init__(self, fetcher: IPageFetcher) -> None:
        self._fetcher = fetcher

    async def extract(self, url: str) -> PageMetadata:
        domain = extract_domain(url)
        try:
            page = await self._fetcher.fetch(url)
            soup = BeautifulSoup(page.html, "html.parser")
        except (ExtractionError, ParserRejectedMarkup) as exc:
            logger.warning(
                "metadata_extraction_degraded",
                stage="metadata",
                url=url,
                error=str(exc),
            )
            return PageMetadata(domain=domain)

        title = _meta_content(soup, _TITLE_META)
        if title is None and soup.title is not None:
            title = soup.title.get_text(strip=True) or None

        image = _meta_content(soup, _IMAGE_META)
        if image is not None:
            try:
                # Relative and protocol-relative references resolve against the page origin.
                image = urljoin(origin_of(page.final_url) + "/", image)
            except ValueError as exc:
                logger.warning(
                    "metadata_extraction_degraded",
                    stage="metadata",
                    url=url,
                    field="hero_image",
                    error=str(exc),
                )
                image = None

        logger.debug(
            "metadata_extracted",
            url=url,
            domain=domain,
            has_title=title is not None,
            has_image=image is not None,
        )
        return PageMetadata(title=title, hero_image=image, domain=domain)
