"""Shared pytest fixtures for the linkvault test suite."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
import pytest_asyncio

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.page_fetcher import FetchedPage, IPageFetcher
from src.providers.store.sqlite_record_store import SQLiteRecordStore
from src.utils.errors import ExtractionError

# Small vectors keep the store tests readable.
EMBEDDING_DIM = 8


def _hash_to_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Deterministic unit-length vector for *text*.

    The SHA-256 digest seeds a numpy generator, so the same text always
    maps to the same finite vector.
    """
    seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "little")
    values = np.random.default_rng(seed).standard_normal(dim)
    return (values / np.linalg.norm(values)).tolist()


def _axis_vector(index: int, dim: int = EMBEDDING_DIM, weight: float = 1.0) -> list[float]:
    """Vector pointing mostly along axis *index*; ``weight`` < 1 tilts it off-axis."""
    vector = [0.0] * dim
    vector[index] = weight
    vector[(index + 1) % dim] = (1.0 - weight * weight) ** 0.5
    return vector


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    def __init__(self, dimension: int = EMBEDDING_DIM) -> None:
        self._dimension = dimension
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [_hash_to_vector(t, self._dimension) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        return _hash_to_vector(text, self._dimension)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class StaticPageFetcher(IPageFetcher):
    """Serves canned HTML by URL; unknown URLs fail like an unreachable host."""

    def __init__(self, pages: dict[str, str] | None = None) -> None:
        self.pages = dict(pages or {})
        self.requested: list[str] = []

    async def fetch(self, url: str) -> FetchedPage:
        self.requested.append(url)
        if url not in self.pages:
            raise ExtractionError(
                message=f"Connection refused for {url}",
                provider_name=self.get_provider_name(),
            )
        return FetchedPage(url=url, final_url=url, html=self.pages[url], content_type="text/html")

    def get_provider_name(self) -> str:
        return "static-fetcher"


SAMPLE_ARTICLE_HTML = """\
<html>
  <head>
    <title>Fallback Title</title>
    <meta property="og:title" content="Understanding SQLite WAL Mode">
    <meta property="og:image" content="/images/wal.png">
  </head>
  <body>
    <nav>Home | Blog | About</nav>
    <article>
      <h1>Understanding SQLite WAL Mode</h1>
      <p>Write-ahead logging lets readers and a writer work at the same time.</p>
      <p>Checkpoints move committed pages from the WAL back into the database file.</p>
    </article>
    <footer>Copyright 2024</footer>
  </body>
</html>
"""


# ---------------------------------------------------------------------------
# Helper fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_vector() -> Callable[..., list[float]]:
    """Return the deterministic text-to-vector helper."""
    return _hash_to_vector


@pytest.fixture
def axis_vector() -> Callable[..., list[float]]:
    """Return the axis-aligned vector helper for hand-built similarity cases."""
    return _axis_vector


@pytest.fixture
def sample_article_html() -> str:
    return SAMPLE_ARTICLE_HTML


# ---------------------------------------------------------------------------
# Mock provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider that returns configurable responses.

    Default complete() returns a plain summary sentence.  Override with
    ``mock_llm_provider.complete.return_value = "..."`` or
    ``mock_llm_provider.complete.side_effect = [...]`` per test.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value="A short summary of the page.")
    return mock


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def fetcher_factory() -> type[StaticPageFetcher]:
    """Return the canned-HTML fetcher class for tests that need custom pages."""
    return StaticPageFetcher


@pytest.fixture
def page_fetcher(sample_article_html: str) -> StaticPageFetcher:
    """Fetcher that knows one article page at ``https://blog.example.com/wal``."""
    return StaticPageFetcher({"https://blog.example.com/wal": sample_article_html})


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def record_store(tmp_path: Path) -> SQLiteRecordStore:
    """Initialised store on a temporary database file."""
    store = SQLiteRecordStore(db_path=tmp_path / "linkvault_test.db", embedding_dimension=EMBEDDING_DIM)
    await store.initialize()
    return store
