"""linkvault API layer: routes, schemas, auth, and middleware."""

from src.api.auth import get_owner_id, issue_token, verify_token
from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from src.api.routes import router
from src.api.schemas import (
    ChatRequest,
    ChatResponse,
    CreateLinkRequest,
    ErrorResponse,
    HealthResponse,
    LinkResponse,
    UpdateLinkRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "router",
    "get_owner_id",
    "issue_token",
    "verify_token",
    "ChatRequest",
    "ChatResponse",
    "CreateLinkRequest",
    "ErrorResponse",
    "HealthResponse",
    "LinkResponse",
    "UpdateLinkRequest",
]
