"""Saved-link domain models for linkvault.

Defines Pydantic v2 models for the records the ingestion pipeline writes
and the retrieval pipeline reads.  All models use frozen config so a
record handed from one stage to the next cannot be mutated in transit;
stages build new instances with ``model_copy(update=...)`` instead.

Ingestion produces:
    PageMetadata  (metadata extractor)  --+
    content str   (content extractor)   --+--> LinkPreview --> Record
    summary/tags/embedding (generators) --+

Retrieval produces:
    RankedRecord list (retrieval ranker) --> ChatExchange (chat service)
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Tag vocabulary
# ---------------------------------------------------------------------------

# Closed vocabulary for link categorisation.  Generated tags are filtered
# against this list; anything else is discarded.
TAG_VOCABULARY: tuple[str, ...] = (
    "Article",
    "Blog",
    "News",
    "Tutorial",
    "Documentation",
    "Video",
    "Image",
    "Social Media",
    "Research",
    "Tool",
    "Product",
    "Forum",
    "Discussion",
    "Review",
    "Music",
)

DEFAULT_TAGS: tuple[str, ...] = ("Article", "Blog")

MAX_TAGS_PER_RECORD = 5

SUMMARY_PLACEHOLDER = "No summary available due to processing error."


def canonical_tag(name: str) -> str | None:
    """Return the vocabulary casing of *name*, or ``None`` if it is not a known tag."""
    key = name.strip().casefold()
    for tag in TAG_VOCABULARY:
        if tag.casefold() == key:
            return tag
    return None


def filter_tags(candidates: list[str]) -> list[str]:
    """Keep vocabulary tags only, canonically cased, de-duplicated, capped.

    Order of first appearance is preserved.  May return an empty list;
    substituting :data:`DEFAULT_TAGS` is the classifier's decision.
    """
    seen: set[str] = set()
    result: list[str] = []
    for candidate in candidates:
        if not isinstance(candidate, str):
            continue
        tag = canonical_tag(candidate)
        if tag is None or tag in seen:
            continue
        seen.add(tag)
        result.append(tag)
        if len(result) >= MAX_TAGS_PER_RECORD:
            break
    return result


# ---------------------------------------------------------------------------
# Extraction results
# ---------------------------------------------------------------------------

class PageMetadata(BaseModel):
    """Social-preview metadata parsed from a fetched page.

    ``domain`` is always set (best-effort parse of the raw URL);
    ``title`` and ``hero_image`` are ``None`` when the page could not be
    fetched or carried no usable tags.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    hero_image: str | None = None
    domain: str = "unknown"


class LinkPreview(BaseModel):
    """Would-be record fields produced without persisting anything."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str | None = None
    hero_image: str | None = None
    domain: str | None = None
    summary: str = SUMMARY_PLACEHOLDER
    tags: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class Tag(BaseModel):
    """A shared vocabulary entry; one row per case-insensitive name."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created_at: datetime | None = None


class Record(BaseModel):
    """The persisted representation of one saved URL.

    A record without an ``embedding`` is still listed but never returned
    by similarity search.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    url: str = Field(min_length=1)
    title: str | None = None
    hero_image: str | None = None
    domain: str | None = None
    summary: str | None = None
    embedding: list[float] | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


class NewRecord(BaseModel):
    """Fields the ingestion pipeline hands to the store for one insert."""

    model_config = ConfigDict(frozen=True)

    owner_id: str
    url: str = Field(min_length=1)
    title: str | None = None
    hero_image: str | None = None
    domain: str | None = None
    summary: str | None = None
    embedding: list[float] | None = None


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------

class RankedRecord(BaseModel):
    """A record returned by similarity search together with its score."""

    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    title: str | None = None
    domain: str | None = None
    summary: str | None = None
    created_at: datetime | None = None
    similarity: float = Field(ge=0.0, le=1.0)

    @property
    def relevance_score(self) -> int:
        """Similarity as a rounded 0-100 percentage for display."""
        return round(self.similarity * 100)


class ChatExchange(BaseModel):
    """One chat turn: the query, the ranked context and the generated answer."""

    model_config = ConfigDict(frozen=True)

    query: str
    ranked_records: list[RankedRecord] = Field(default_factory=list)
    answer: str
