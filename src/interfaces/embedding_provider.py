"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into dense vectors.  Implementations
wrap OpenAI ``text-embedding-3-small`` or Nomic ``nomic-embed-text``
(local via Ollama).  Providers return raw vectors; dimension and finiteness
checks happen in :class:`~src.services.embedding_generator.EmbeddingGenerator`
so that no provider output is trusted before it reaches the store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims, API key)
#   NomicEmbeddingProvider  -- nomic-embed-text via Ollama (768 dims, local)
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        src.utils.errors.EmbeddingGenerationError
            If the embedding API call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality the model is documented to produce.

        Example values: ``1536`` (OpenAI ``text-embedding-3-small``),
        ``768`` (Nomic ``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
