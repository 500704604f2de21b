"""FastAPI API routes for linkvault.

Service dependencies are resolved from ``app.state`` (populated at startup
by ``main.build_services``) through ``Annotated[..., Depends(...)]`` aliases,
so tests can mount the router on a bare app and drop mocks onto the state.

# Endpoint                         Method  Description
# ----------------------------------------------------------------------
# /api/v1/links                    POST    Save a URL (extract, generate, store)
# /api/v1/links/preview?url=       GET     Preview what would be saved
# /api/v1/links                    GET     List the owner's links, newest first
# /api/v1/links/{id}               GET     One link
# /api/v1/links/{id}               PUT     Edit title / summary / tags
# /api/v1/links/{id}               DELETE  Delete a link
# /api/v1/chat                     POST    Ask a question over saved links
# /api/v1/tags                     GET     All tags
# /api/v1/tags/{name}/links        GET     The owner's links carrying a tag
# /api/v1/health                   GET     Health check (no auth)

Every route except ``/health`` requires ``Authorization: Bearer <token>``.
Domain exceptions are left to ``ErrorHandlingMiddleware``, which maps them
to 400/401/404/500 JSON bodies.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request

from src.api.auth import OwnerDep
from src.api.schemas import (
    ChatRequest,
    ChatResponse,
    CreateLinkRequest,
    HealthResponse,
    LinkDetailResponse,
    LinkListResponse,
    LinkMutationResponse,
    LinkResponse,
    MessageResponse,
    PreviewBody,
    PreviewResponse,
    RankedLinkResponse,
    TagLinksResponse,
    TagListResponse,
    TagResponse,
    UpdateLinkRequest,
)
from src.services.chat_service import ChatService
from src.services.ingestion_service import IngestionService

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency injection helpers
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion service from application state."""
    return request.app.state.ingestion_service


def _get_chat_service(request: Request) -> ChatService:
    """Return the chat service from application state."""
    return request.app.state.chat_service


IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
ChatDep = Annotated[ChatService, Depends(_get_chat_service)]


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


@router.post(
    "/links",
    response_model=LinkMutationResponse,
    status_code=201,
    summary="Save a link",
)
async def create_link(
    body: CreateLinkRequest,
    owner_id: OwnerDep,
    ingestion: IngestionDep,
) -> LinkMutationResponse:
    """Extract, summarise, tag and embed a URL, then store it."""
    record = await ingestion.ingest(body.url, owner_id)
    return LinkMutationResponse(
        message="Link created successfully",
        link=LinkResponse.from_record(record, include_embedding=body.include_embedding),
    )


@router.get(
    "/links/preview",
    response_model=PreviewResponse,
    summary="Preview a link without saving it",
)
async def preview_link(
    owner_id: OwnerDep,
    ingestion: IngestionDep,
    url: Annotated[str, Query(max_length=2048)] = "",
) -> PreviewResponse:
    preview = await ingestion.preview(url)
    return PreviewResponse(preview=PreviewBody.from_preview(preview))


@router.get("/links", response_model=LinkListResponse, summary="List saved links")
async def list_links(owner_id: OwnerDep, ingestion: IngestionDep) -> LinkListResponse:
    records = await ingestion.list_records(owner_id)
    return LinkListResponse(links=[LinkResponse.from_record(r) for r in records])


@router.get("/links/{link_id}", response_model=LinkDetailResponse, summary="Get one link")
async def get_link(
    link_id: str,
    owner_id: OwnerDep,
    ingestion: IngestionDep,
    include_embedding: bool = False,
) -> LinkDetailResponse:
    record = await ingestion.get_record(link_id, owner_id)
    return LinkDetailResponse(
        link=LinkResponse.from_record(record, include_embedding=include_embedding)
    )


@router.put("/links/{link_id}", response_model=LinkMutationResponse, summary="Edit a link")
async def update_link(
    link_id: str,
    body: UpdateLinkRequest,
    owner_id: OwnerDep,
    ingestion: IngestionDep,
) -> LinkMutationResponse:
    record = await ingestion.update_record(
        link_id,
        owner_id,
        title=body.title,
        summary=body.summary,
        tags=body.tags,
    )
    return LinkMutationResponse(
        message="Link updated successfully",
        link=LinkResponse.from_record(record),
    )


@router.delete("/links/{link_id}", response_model=MessageResponse, summary="Delete a link")
async def delete_link(link_id: str, owner_id: OwnerDep, ingestion: IngestionDep) -> MessageResponse:
    await ingestion.delete_record(link_id, owner_id)
    return MessageResponse(message="Link deleted successfully")


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post("/chat", response_model=ChatResponse, summary="Ask about saved links")
async def chat(body: ChatRequest, owner_id: OwnerDep, chat_service: ChatDep) -> ChatResponse:
    """Answer a question using the owner's most relevant saved links as context."""
    exchange = await chat_service.chat(body.query, owner_id)
    return ChatResponse(
        answer=exchange.answer,
        ranked_records=[RankedLinkResponse.from_ranked(r) for r in exchange.ranked_records],
    )


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@router.get("/tags", response_model=TagListResponse, summary="List tags")
async def list_tags(owner_id: OwnerDep, ingestion: IngestionDep) -> TagListResponse:
    tags = await ingestion.list_tags()
    return TagListResponse(tags=[TagResponse.from_tag(t) for t in tags])


@router.get("/tags/{tag_name}/links", response_model=TagLinksResponse, summary="Links by tag")
async def list_links_by_tag(
    tag_name: str,
    owner_id: OwnerDep,
    ingestion: IngestionDep,
) -> TagLinksResponse:
    tag, records = await ingestion.list_records_by_tag(tag_name, owner_id)
    return TagLinksResponse(
        tag=TagResponse.from_tag(tag),
        links=[LinkResponse.from_record(r) for r in records],
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    critical = ("llm", "embedding", "store")
    if all(providers.get(name, False) for name in critical):
        status = "healthy"
    elif providers.get("store", False):
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=_VERSION, providers=providers)
