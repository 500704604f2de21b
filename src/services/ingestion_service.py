"""Orchestrator for saving a link: **extract -> generate -> store -> tag**.

The :class:`IngestionService` coordinates the extractors, the three
generators and the record store without any of them knowing about each
other.  :meth:`IngestionService.ingest` runs:

    1. URL validation (:class:`InputValidationError` on bad input)
    2. MetadataExtractor + ContentExtractor, concurrently
    3. Summarizer + TagClassifier + EmbeddingGenerator, concurrently
    4. IRecordStore.create_record -- core fields and embedding, one write
    5. IRecordStore.link_tags -- retried, never rolls back the record

Extraction, summary and tags degrade to safe defaults.  Embedding does
not: if it fails, the exception propagates and nothing is written, so a
caller can simply retry the same URL later.

The service also owns the owner-scoped CRUD operations on saved records
and tags that the API exposes.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from src.models.record import LinkPreview, NewRecord, Record, Tag, filter_tags
from src.utils.errors import InputValidationError, StoreError
from src.utils.retry import retry_async
from src.utils.url import validate_url

if TYPE_CHECKING:
    from src.interfaces.record_store import IRecordStore
    from src.services.content_extractor import ContentExtractor
    from src.services.embedding_generator import EmbeddingGenerator
    from src.services.metadata_extractor import MetadataExtractor
    from src.services.summarizer import Summarizer
    from src.services.tag_classifier import TagClassifier

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Turns raw URLs into stored, searchable records.

    Parameters
    ----------
    metadata_extractor:
        Title / hero image / domain extraction.
    content_extractor:
        Main-text extraction feeding the generators.
    summarizer:
        3-4 line summary generation (degradable).
    tag_classifier:
        Vocabulary tagging (degradable).
    embedding_generator:
        Validated embedding generation (hard failure).
    store:
        Record persistence and tag links.
    tag_link_attempts:
        Tries for attaching tags once the record exists.
    tag_link_backoff:
        Base delay between tag-link tries, in seconds.
    """

    def __init__(
        self,
        metadata_extractor: MetadataExtractor,
        content_extractor: ContentExtractor,
        summarizer: Summarizer,
        tag_classifier: TagClassifier,
        embedding_generator: EmbeddingGenerator,
        store: IRecordStore,
        tag_link_attempts: int = 3,
        tag_link_backoff: float = 0.5,
    ) -> None:
        self._metadata_extractor = metadata_extractor
        self._content_extractor = content_extractor
        self._summarizer = summarizer
        self._tag_classifier = tag_classifier
        self._embedding_generator = embedding_generator
        self._store = store
        self._tag_link_attempts = tag_link_attempts
        self._tag_link_backoff = tag_link_backoff

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def ingest(self, url: str, owner_id: str) -> Record:
        """Extract, summarise, tag, embed and persist *url* for *owner_id*.

        Raises
        ------
        InputValidationError
            If *url* is malformed.
        EmbeddingGenerationError, EmbeddingValidationError
            If no valid embedding could be produced; nothing is stored.
        StoreError
            If the record itself could not be written.
        """
        url = validate_url(url)
        log = logger.bind(url=url, owner_id=owner_id)
        log.info("ingestion_started")

        metadata, content = await asyncio.gather(
            self._metadata_extractor.extract(url),
            self._content_extractor.extract(url),
        )

        summary, tags, embedding = await asyncio.gather(
            self._summarizer.summarize(content),
            self._tag_classifier.classify(content),
            self._embedding_generator.generate(content),
        )

        record = await self._store.create_record(
            NewRecord(
                owner_id=owner_id,
                url=url,
                title=metadata.title,
                hero_image=metadata.hero_image,
                domain=metadata.domain,
                summary=summary,
                embedding=embedding,
            )
        )

        linked = await self._attach_tags(record.id, tags)
        log.info(
            "ingestion_complete",
            record_id=record.id,
            tags=linked,
            has_title=record.title is not None,
        )
        return record.model_copy(update={"tags": linked})

    async def preview(self, url: str) -> LinkPreview:
        """Return what :meth:`ingest` would store, without embedding or persisting."""
        url = validate_url(url)
        metadata, content = await asyncio.gather(
            self._metadata_extractor.extract(url),
            self._content_extractor.extract(url),
        )
        summary, tags = await asyncio.gather(
            self._summarizer.summarize(content),
            self._tag_classifier.classify(content),
        )
        logger.info("preview_generated", url=url, tags=tags)
        return LinkPreview(
            url=url,
            title=metadata.title,
            hero_image=metadata.hero_image,
            domain=metadata.domain,
            summary=summary,
            tags=tags,
        )

    async def _attach_tags(self, record_id: str, tags: list[str]) -> list[str]:
        """Link *tags* to the record; on repeated failure keep the record untagged."""
        if not tags:
            return []
        try:
            return await retry_async(
                lambda: self._store.link_tags(record_id, tags),
                attempts=self._tag_link_attempts,
                backoff=self._tag_link_backoff,
                retry_on=(StoreError,),
                event="tag_link_attempt_failed",
                logger=logger,
            )
        except StoreError as exc:
            logger.error(
                "tag_link_failed",
                record_id=record_id,
                tags=tags,
                error=str(exc),
            )
            return []

    # ------------------------------------------------------------------
    # Record CRUD
    # ------------------------------------------------------------------

    async def list_records(self, owner_id: str) -> list[Record]:
        return await self._store.list_records(owner_id)

    async def get_record(self, record_id: str, owner_id: str) -> Record:
        return await self._store.get_record(record_id, owner_id)

    async def update_record(
        self,
        record_id: str,
        owner_id: str,
        *,
        title: str | None = None,
        summary: str | None = None,
        tags: list[str] | None = None,
    ) -> Record:
        """Edit a record's title, summary and/or tags.

        Supplied tags replace the existing set after being filtered
        against the vocabulary; unknown names are dropped silently.
        """
        record = await self._store.update_record(
            record_id, owner_id, title=title, summary=summary
        )
        if tags is None:
            return record

        kept = filter_tags(tags)
        if len(kept) < len(tags):
            logger.info(
                "update_tags_filtered",
                record_id=record_id,
                requested=tags,
                kept=kept,
            )
        linked = await self._store.replace_tags(record_id, owner_id, kept)
        return record.model_copy(update={"tags": linked})

    async def delete_record(self, record_id: str, owner_id: str) -> None:
        await self._store.delete_record(record_id, owner_id)

    async def delete_owner(self, owner_id: str) -> int:
        """Remove every record belonging to *owner_id* (account deletion)."""
        if not owner_id:
            raise InputValidationError("Owner id is required")
        return await self._store.delete_owner(owner_id)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def list_tags(self) -> list[Tag]:
        return await self._store.list_tags()

    async def list_records_by_tag(self, tag_name: str, owner_id: str) -> tuple[Tag, list[Record]]:
        return await self._store.list_records_by_tag(tag_name, owner_id)
