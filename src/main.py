"""linkvault FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging before anything else is built.

``build_services`` is also used by the CLI to get the same object graph
outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.page.httpx_page_fetcher import HttpxPageFetcher
from src.providers.store.sqlite_record_store import SQLiteRecordStore
from src.services.answer_generator import AnswerGenerator
from src.services.chat_service import ChatService
from src.services.content_extractor import ContentExtractor
from src.services.embedding_generator import EmbeddingGenerator
from src.services.ingestion_service import IngestionService
from src.services.metadata_extractor import MetadataExtractor
from src.services.reconciliation_service import ReconciliationService
from src.services.retrieval_service import RetrievalService
from src.services.summarizer import Summarizer
from src.services.tag_classifier import TagClassifier
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=settings.is_production,
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first configured LLM provider.

    Priority order: Anthropic -> OpenAI -> Ollama (always available).
    """
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the embedding provider and check it matches ``EMBEDDING_DIMENSION``.

    Priority: OpenAI/OpenAI-compatible (if API key set) -> Nomic/Ollama.
    """
    provider: IEmbeddingProvider
    if app_settings.openai_api_key:
        provider = OpenAIEmbeddingProvider(settings=app_settings)
    else:
        provider = NomicEmbeddingProvider(settings=app_settings)

    if provider.get_dimension() != app_settings.embedding_dimension:
        raise ConfigurationError(
            message=(
                f"{provider.get_provider_name()} produces {provider.get_dimension()}-dim "
                f"vectors but EMBEDDING_DIMENSION={app_settings.embedding_dimension}"
            ),
            provider_name=provider.get_provider_name(),
        )
    return provider


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_services(app_settings: Settings, app_config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components, stored on ``app.state`` by the
    lifespan handler and used directly by the CLI.
    """
    app_config = app_config or {}
    retrieval_cfg = app_config.get("retrieval", {})
    ingestion_cfg = app_config.get("ingestion", {})

    max_attempts = int(ingestion_cfg.get("generation_max_attempts", app_settings.generation_max_attempts))
    backoff = app_settings.generation_retry_backoff

    # -- Shared resources --
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.fetch_timeout_seconds),
        follow_redirects=True,
    )
    fetcher = HttpxPageFetcher(
        http_client=http_client,
        timeout=app_settings.fetch_timeout_seconds,
        max_bytes=app_settings.fetch_max_bytes,
    )

    # -- Providers --
    llm = _build_llm_provider(app_settings)
    embedding_provider = _build_embedding_provider(app_settings)
    store = SQLiteRecordStore(
        db_path=app_settings.database_path,
        embedding_dimension=app_settings.embedding_dimension,
    )

    # -- Services --
    metadata_extractor = MetadataExtractor(fetcher)
    content_extractor = ContentExtractor(
        fetcher,
        max_chars=int(ingestion_cfg.get("content_max_chars", app_settings.content_max_chars)),
    )
    summarizer = Summarizer(llm, max_attempts=max_attempts, backoff=backoff)
    tag_classifier = TagClassifier(llm, max_attempts=max_attempts, backoff=backoff)
    embedding_generator = EmbeddingGenerator(
        embedding_provider,
        dimension=app_settings.embedding_dimension,
        max_attempts=max_attempts,
        backoff=backoff,
    )
    ingestion_service = IngestionService(
        metadata_extractor=metadata_extractor,
        content_extractor=content_extractor,
        summarizer=summarizer,
        tag_classifier=tag_classifier,
        embedding_generator=embedding_generator,
        store=store,
        tag_link_attempts=app_settings.tag_link_max_attempts,
        tag_link_backoff=backoff,
    )
    retrieval_service = RetrievalService(
        embedding_generator,
        store,
        query_prefix=str(retrieval_cfg.get("query_prefix", app_settings.chat_query_prefix)),
    )
    chat_service = ChatService(
        retrieval_service,
        AnswerGenerator(llm),
        top_k=int(retrieval_cfg.get("top_k", app_settings.chat_top_k)),
        similarity_floor=float(
            retrieval_cfg.get("similarity_floor", app_settings.chat_similarity_floor)
        ),
    )
    reconciliation_service = ReconciliationService(store, content_extractor, embedding_generator)

    provider_registry = {
        "llm": llm.is_available(),
        "llm_provider": llm.get_provider_name(),
        "embedding": embedding_provider.is_available(),
        "embedding_provider": embedding_provider.get_provider_name(),
        "store": True,
        "store_provider": store.get_provider_name(),
    }

    return {
        "http_client": http_client,
        "primary_llm": llm,
        "embedding_provider": embedding_provider,
        "record_store": store,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
        "chat_service": chat_service,
        "reconciliation_service": reconciliation_service,
        "provider_registry": provider_registry,
        "auth_secret": app_settings.auth_secret,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_services(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["record_store"].initialize()

    if not settings.auth_secret:
        _logger.warning(
            "auth_secret_unset",
            message="Bearer tokens are accepted verbatim as owner ids",
        )
    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        primary_llm=components["primary_llm"].get_provider_name(),
        embedding=components["embedding_provider"].get_provider_name(),
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="linkvault API",
        version=_VERSION,
        description=(
            "Save links, get them summarised, tagged and embedded automatically, "
            "then ask questions answered from the links you saved."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware, production=settings.is_production)
    application.add_middleware(RequestLoggingMiddleware)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
