"""Validated embedding generation.

Wraps an :class:`IEmbeddingProvider` with bounded retries and an
unconditional output check.  Unlike the summary and tags, an embedding
has no safe default: a record stored without one would silently drop out
of chat retrieval.  Failures here therefore propagate and abort the
ingestion that asked for the vector.
"""

from __future__ import annotations

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingGenerationError
from src.utils.retry import retry_async
from src.utils.vectors import validate_embedding

logger = structlog.get_logger(logger_name=__name__)

_MAX_INPUT_CHARS = 8000


class EmbeddingGenerator:
    """Turns text into a D-dimensional, finite embedding vector.

    Parameters
    ----------
    provider:
        The embedding backend (injected, swappable).
    dimension:
        Exact vector length required downstream (``EMBEDDING_DIMENSION``).
    max_attempts:
        Provider calls made before giving up.
    backoff:
        Base delay between attempts, in seconds.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        dimension: int,
        max_attempts: int = 3,
        backoff: float = 0.5,
    ) -> None:
        self._provider = provider
        self._dimension = dimension
        self._max_attempts = max_attempts
        self._backoff = backoff

    @property
    def dimension(self) -> int:
        return self._dimension

    async def generate(self, text: str) -> list[float]:
        """Embed *text* (first 8000 characters) and validate the result.

        Raises
        ------
        EmbeddingGenerationError
            If the provider keeps failing after all attempts.
        EmbeddingValidationError
            If the returned vector has the wrong length or non-finite values.
        """
        truncated = text[:_MAX_INPUT_CHARS]
        try:
            vector = await retry_async(
                lambda: self._provider.embed_single(truncated),
                attempts=self._max_attempts,
                backoff=self._backoff,
                retry_on=(EmbeddingGenerationError,),
                event="embedding_attempt_failed",
                logger=logger,
            )
        except EmbeddingGenerationError as exc:
            logger.error(
                "embedding_generation_failed",
                provider=self._provider.get_provider_name(),
                error=str(exc),
            )
            raise

        return self.validate(vector)

    def validate(self, vector: list[float] | None) -> list[float]:
        """Check *vector* against the configured dimension; raise if unusable."""
        return validate_embedding(vector, self._dimension, self._provider.get_provider_name())
