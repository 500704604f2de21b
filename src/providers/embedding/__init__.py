"""Embedding provider implementations.

Embeddings turn a link's summary (and a chat query) into a vector so the
record store can rank saved links by cosine similarity.

Two implementations of IEmbeddingProvider, in the order main.py tries them:
    1. OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims), API key.
    2. NomicEmbeddingProvider  -- nomic-embed-text via Ollama (768 dims), local.
"""

from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "NomicEmbeddingProvider"]
