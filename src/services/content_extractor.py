"""Main-text extraction for saved links.

Strips page chrome (scripts, navigation, forms and the like) and then
looks for the article body in three passes:

1. the first ranked content container that has text;
2. every paragraph longer than 50 characters, joined with blank lines;
3. the whole ``<body>`` text.

The result is whitespace-collapsed and truncated.  The extractor never
raises and never returns an empty string: when nothing usable is found
it returns a marker sentence naming the URL, which still gives the
summarizer and embedding generator something to work with.
"""

from __future__ import annotations

import re

import structlog
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from src.interfaces.page_fetcher import IPageFetcher
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_STRIP_TAGS = (
    "script",
    "style",
    "nav",
    "footer",
    "header",
    "aside",
    "iframe",
    "noscript",
    "svg",
    "form",
    "button",
)

_CONTENT_SELECTORS = (
    "article",
    "main",
    ".content",
    ".post-content",
    ".article-content",
    ".entry-content",
    "#content",
    '[role="main"]',
    ".post",
    ".blog-post",
)

_MIN_PARAGRAPH_CHARS = 50
_WHITESPACE = re.compile(r"\s+")

EMPTY_CONTENT_TEMPLATE = "Could not extract meaningful content from {url}"
FAILED_CONTENT_TEMPLATE = "Failed to extract content from {url}. Error: {reason}"


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_main_text(html: str) -> str:
    """Return the collapsed main text of *html*, or ``""`` if there is none."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(_STRIP_TAGS):
        element.decompose()

    for selector in _CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        text = _collapse(container.get_text(" "))
        if text:
            return text

    paragraphs = [
        _collapse(p.get_text(" "))
        for p in soup.find_all("p")
    ]
    long_paragraphs = [p for p in paragraphs if len(p) > _MIN_PARAGRAPH_CHARS]
    if long_paragraphs:
        # Blank-line separators collapse like any other whitespace.
        return _collapse("\n\n".join(long_paragraphs))

    body = soup.body or soup
    return _collapse(body.get_text(" "))


def truncate(text: str, max_chars: int) -> str:
    """Cut *text* to *max_chars* characters plus an ``...`` suffix."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


class ContentExtractor:
    """Extracts the readable main text of a page for summarisation."""

    def __init__(self, fetcher: IPageFetcher, max_chars: int = 8000) -> None:
        self._fetcher = fetcher
        self._max_chars = max_chars

    async def extract(self, url: str) -> str:
        try:
            page = await self._fetcher.fetch(url)
        except ExtractionError as exc:
            logger.warning(
                "content_extraction_degraded",
                stage="content",
                url=url,
                error=exc.message,
            )
            return FAILED_CONTENT_TEMPLATE.format(url=url, reason=exc.message)

        try:
            text = extract_main_text(page.html)
        except (ParserRejectedMarkup, ValueError) as exc:
            logger.warning(
                "content_extraction_degraded",
                stage="content",
                url=url,
                error=str(exc),
            )
            return FAILED_CONTENT_TEMPLATE.format(url=url, reason=str(exc))

        if not text:
            logger.warning("content_extraction_empty", stage="content", url=url)
            return EMPTY_CONTENT_TEMPLATE.format(url=url)

        logger.debug("content_extracted", url=url, chars=len(text))
        return truncate(text, self._max_chars)
