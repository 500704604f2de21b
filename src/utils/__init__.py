"""Utility modules for linkvault.

- **errors** -- Domain exception hierarchy rooted at LinkVaultError; each
  subclass carries the HTTP status the API layer maps it to.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **retry** -- Bounded async retry with linear backoff for generation calls.
- **url** -- URL normalisation, validation and display-domain parsing.
- **vectors** -- Embedding validation and numpy cosine similarity.
"""

from src.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    EmbeddingGenerationError,
    EmbeddingValidationError,
    ExtractionError,
    InputValidationError,
    LinkVaultError,
    LLMError,
    RecordNotFoundError,
    StoreError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.retry import retry_async
from src.utils.url import extract_domain, normalize_url, validate_url
from src.utils.vectors import cosine_similarities, validate_embedding

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "EmbeddingGenerationError",
    "EmbeddingValidationError",
    "ExtractionError",
    "InputValidationError",
    "LLMError",
    "LinkVaultError",
    "RecordNotFoundError",
    "StoreError",
    "configure_logging",
    "cosine_similarities",
    "extract_domain",
    "get_logger",
    "normalize_url",
    "retry_async",
    "validate_embedding",
    "validate_url",
]
