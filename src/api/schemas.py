"""Pydantic request/response schemas for the linkvault API.

Request schemas end with ``Request``, response schemas with ``Response``.
FastAPI validates incoming JSON against them (422 on shape errors) and
serialises outgoing bodies through them.  Semantic checks such as URL
well-formedness happen in the services and surface as 400s.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.record import LinkPreview, RankedRecord, Record, Tag


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


class CreateLinkRequest(BaseModel):
    """Save a URL for the authenticated owner."""

    url: str = Field(..., max_length=2048)
    include_embedding: bool = False


class UpdateLinkRequest(BaseModel):
    """Edit a saved link; omitted fields are left unchanged."""

    title: str | None = Field(default=None, max_length=500)
    summary: str | None = Field(default=None, max_length=5000)
    tags: list[str] | None = None


class LinkResponse(BaseModel):
    """A saved link as returned to clients."""

    id: str
    url: str
    title: str | None = None
    hero_image: str | None = None
    domain: str | None = None
    summary: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    embedding: list[float] | None = None

    @classmethod
    def from_record(cls, record: Record, *, include_embedding: bool = False) -> LinkResponse:
        return cls(
            id=record.id,
            url=record.url,
            title=record.title,
            hero_image=record.hero_image,
            domain=record.domain,
            summary=record.summary,
            tags=list(record.tags),
            created_at=record.created_at,
            updated_at=record.updated_at,
            embedding=list(record.embedding) if include_embedding and record.embedding else None,
        )


class LinkMutationResponse(BaseModel):
    """Result of creating or updating a link."""

    message: str
    link: LinkResponse


class LinkDetailResponse(BaseModel):
    link: LinkResponse


class LinkListResponse(BaseModel):
    links: list[LinkResponse]


class PreviewBody(BaseModel):
    url: str
    title: str | None = None
    hero_image: str | None = None
    domain: str | None = None
    summary: str
    tags: list[str]

    @classmethod
    def from_preview(cls, preview: LinkPreview) -> PreviewBody:
        return cls(**preview.model_dump())


class PreviewResponse(BaseModel):
    """Would-be record fields for a URL, nothing persisted."""

    preview: PreviewBody


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """A natural-language question about the owner's saved links."""

    query: str = Field(..., max_length=2000)


class RankedLinkResponse(BaseModel):
    """One context link with its similarity score."""

    id: str
    url: str
    title: str | None = None
    domain: str | None = None
    summary: str | None = None
    similarity: float
    relevance_score: int

    @classmethod
    def from_ranked(cls, ranked: RankedRecord) -> RankedLinkResponse:
        return cls(
            id=ranked.id,
            url=ranked.url,
            title=ranked.title,
            domain=ranked.domain,
            summary=ranked.summary,
            similarity=ranked.similarity,
            relevance_score=ranked.relevance_score,
        )


class ChatResponse(BaseModel):
    answer: str
    ranked_records: list[RankedLinkResponse]


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


class TagResponse(BaseModel):
    id: str
    name: str

    @classmethod
    def from_tag(cls, tag: Tag) -> TagResponse:
        return cls(id=tag.id, name=tag.name)


class TagListResponse(BaseModel):
    tags: list[TagResponse]


class TagLinksResponse(BaseModel):
    tag: TagResponse
    links: list[LinkResponse]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
