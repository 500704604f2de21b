"""Public interface definitions for all external collaborators.

Every external API or service linkvault depends on is reached through the
abstract base classes defined here.  Concrete adapters implement them and
are constructed once in ``src/main.py`` then injected into the services,
so tests can swap any of them for a mock.

CONCRETE PROVIDER MAP:
    Interface            ->  Concrete implementations (in src/providers/)
    -----------------------------------------------------------------
    ILLMProvider         ->  OpenAILLMProvider, AnthropicLLMProvider,
                             OllamaLLMProvider
    IEmbeddingProvider   ->  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IPageFetcher         ->  HttpxPageFetcher
    IRecordStore         ->  SQLiteRecordStore
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.page_fetcher import FetchedPage, IPageFetcher
from src.interfaces.record_store import IRecordStore

__all__ = [
    "FetchedPage",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IPageFetcher",
    "IRecordStore",
]
