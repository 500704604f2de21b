"""Unit tests for IngestionService: the extract -> generate -> store -> tag flow.

Runs the real extractors, generators and SQLite store against a canned
page fetcher, a mocked LLM and a deterministic embedding provider.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.record import SUMMARY_PLACEHOLDER
from src.services.content_extractor import ContentExtractor
from src.services.embedding_generator import EmbeddingGenerator
from src.services.ingestion_service import IngestionService
from src.services.metadata_extractor import MetadataExtractor
from src.services.summarizer import Summarizer
from src.services.tag_classifier import TagClassifier
from src.utils.errors import (
    EmbeddingGenerationError,
    InputValidationError,
    LLMError,
    RecordNotFoundError,
    StoreError,
)

_URL = "https://blog.example.com/wal"


async def _llm_reply(system_prompt: str, user_prompt: str, temperature: float = 0.3, max_tokens: int = 4000) -> str:
    if "categorizes" in system_prompt:
        return '["Tutorial", "Documentation", "Cooking"]'
    return "WAL mode lets readers and writers work concurrently."


def _service(store, fetcher, llm, embedding_provider, dimension: int = 8) -> IngestionService:
    return IngestionService(
        metadata_extractor=MetadataExtractor(fetcher),
        content_extractor=ContentExtractor(fetcher),
        summarizer=Summarizer(llm, max_attempts=2, backoff=0),
        tag_classifier=TagClassifier(llm, max_attempts=2, backoff=0),
        embedding_generator=EmbeddingGenerator(embedding_provider, dimension, max_attempts=2, backoff=0),
        store=store,
        tag_link_attempts=2,
        tag_link_backoff=0,
    )


@pytest.fixture
def llm(mock_llm_provider):
    mock_llm_provider.complete.side_effect = _llm_reply
    return mock_llm_provider


def _failing_embedding_provider() -> MagicMock:
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.get_provider_name.return_value = "broken-embedding"
    mock.embed_single = AsyncMock(side_effect=EmbeddingGenerationError("provider down"))
    return mock


class TestIngest:
    @pytest.mark.asyncio
    async def test_malformed_hero_image_still_stores_record(
        self, record_store, fetcher_factory, llm, mock_embedding_provider
    ) -> None:
        html = (
            '<html><head><meta property="og:title" content="T">'
            '<meta property="og:image" content="http://[broken/x.png"></head>'
            f"<body><article>{'WAL keeps readers and writers apart. ' * 5}</article></body></html>"
        )
        service = _service(record_store, fetcher_factory({_URL: html}), llm, mock_embedding_provider)

        record = await service.ingest(_URL, "alice")

        assert record.title == "T"
        assert record.hero_image is None
        assert len(record.embedding) == 8
        assert len(await record_store.list_records("alice")) == 1

    @pytest.mark.asyncio
    async def test_stores_complete_record(self, record_store, page_fetcher, llm, mock_embedding_provider) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)

        record = await service.ingest(_URL, "alice")

        assert record.url == _URL
        assert record.title == "Understanding SQLite WAL Mode"
        assert record.hero_image == "https://blog.example.com/images/wal.png"
        assert record.domain == "blog.example.com"
        assert record.summary == "WAL mode lets readers and writers work concurrently."
        assert record.tags == ["Tutorial", "Documentation"]
        assert record.embedding is not None and len(record.embedding) == 8

        stored = await record_store.get_record(record.id, "alice")
        assert stored.tags == ["Tutorial", "Documentation"]
        assert stored.embedding == pytest.approx(record.embedding)

    @pytest.mark.asyncio
    async def test_embeds_extracted_content(self, record_store, page_fetcher, llm, mock_embedding_provider) -> None:
        await _service(record_store, page_fetcher, llm, mock_embedding_provider).ingest(_URL, "alice")
        assert "Write-ahead logging" in mock_embedding_provider.calls[0]

    @pytest.mark.asyncio
    async def test_unreachable_page_still_stores_record(
        self, record_store, fetcher_factory, llm, mock_embedding_provider
    ) -> None:
        service = _service(record_store, fetcher_factory({}), llm, mock_embedding_provider)

        record = await service.ingest("https://down.example.com/post", "alice")

        assert record.title is None
        assert record.hero_image is None
        assert record.domain == "down.example.com"
        assert record.embedding is not None
        assert mock_embedding_provider.calls[0].startswith(
            "Failed to extract content from https://down.example.com/post"
        )

    @pytest.mark.asyncio
    async def test_generation_failures_degrade(
        self, record_store, page_fetcher, mock_llm_provider, mock_embedding_provider
    ) -> None:
        mock_llm_provider.complete.side_effect = LLMError("quota exceeded")
        service = _service(record_store, page_fetcher, mock_llm_provider, mock_embedding_provider)

        record = await service.ingest(_URL, "alice")

        assert record.summary == SUMMARY_PLACEHOLDER
        assert record.tags == ["Article", "Blog"]
        assert record.embedding is not None

    @pytest.mark.asyncio
    async def test_embedding_failure_writes_nothing_and_retry_creates_one(
        self, record_store, page_fetcher, llm, mock_embedding_provider
    ) -> None:
        broken = _service(record_store, page_fetcher, llm, _failing_embedding_provider())
        with pytest.raises(EmbeddingGenerationError):
            await broken.ingest(_URL, "alice")
        assert await record_store.list_records("alice") == []

        working = _service(record_store, page_fetcher, llm, mock_embedding_provider)
        await working.ingest(_URL, "alice")
        assert len(await record_store.list_records("alice")) == 1

    @pytest.mark.asyncio
    async def test_tag_link_failure_keeps_record(
        self, record_store, page_fetcher, llm, mock_embedding_provider, monkeypatch
    ) -> None:
        link_tags = AsyncMock(side_effect=StoreError("database is locked"))
        monkeypatch.setattr(record_store, "link_tags", link_tags)
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)

        record = await service.ingest(_URL, "alice")

        assert record.tags == []
        assert link_tags.await_count == 2
        stored = await record_store.get_record(record.id, "alice")
        assert stored.embedding is not None

    @pytest.mark.asyncio
    async def test_invalid_url_rejected_before_fetching(
        self, record_store, page_fetcher, llm, mock_embedding_provider
    ) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)
        with pytest.raises(InputValidationError):
            await service.ingest("not a url", "alice")
        assert page_fetcher.requested == []


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview_persists_nothing(self, record_store, page_fetcher, llm, mock_embedding_provider) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)

        preview = await service.preview(_URL)

        assert preview.title == "Understanding SQLite WAL Mode"
        assert preview.tags == ["Tutorial", "Documentation"]
        assert mock_embedding_provider.calls == []
        assert await record_store.list_records("alice") == []


class TestRecordOperations:
    @pytest.mark.asyncio
    async def test_update_filters_tags(self, record_store, page_fetcher, llm, mock_embedding_provider) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)
        record = await service.ingest(_URL, "alice")

        updated = await service.update_record(
            record.id, "alice", title="My notes on WAL", tags=["news", "Gardening"]
        )

        assert updated.title == "My notes on WAL"
        assert updated.tags == ["News"]
        assert updated.embedding == pytest.approx(record.embedding)

    @pytest.mark.asyncio
    async def test_update_without_tags_keeps_existing(
        self, record_store, page_fetcher, llm, mock_embedding_provider
    ) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)
        record = await service.ingest(_URL, "alice")

        updated = await service.update_record(record.id, "alice", summary="Edited")

        assert updated.summary == "Edited"
        assert updated.tags == ["Tutorial", "Documentation"]

    @pytest.mark.asyncio
    async def test_delete_then_get_is_not_found(self, record_store, page_fetcher, llm, mock_embedding_provider) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)
        record = await service.ingest(_URL, "alice")

        await service.delete_record(record.id, "alice")

        with pytest.raises(RecordNotFoundError):
            await service.get_record(record.id, "alice")

    @pytest.mark.asyncio
    async def test_delete_owner_requires_owner(self, record_store, page_fetcher, llm, mock_embedding_provider) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)
        with pytest.raises(InputValidationError):
            await service.delete_owner("")

    @pytest.mark.asyncio
    async def test_records_by_tag(self, record_store, page_fetcher, llm, mock_embedding_provider) -> None:
        service = _service(record_store, page_fetcher, llm, mock_embedding_provider)
        record = await service.ingest(_URL, "alice")

        tag, records = await service.list_records_by_tag("tutorial", "alice")

        assert tag.name == "Tutorial"
        assert [r.id for r in records] == [record.id]
        assert {t.name for t in await service.list_tags()} == {"Tutorial", "Documentation"}
