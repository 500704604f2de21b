"""Repair sweep for records that were stored without an embedding.

A record without an embedding is listed but never retrieved by chat.
Ingestion does not create such records, but imported rows or rows
written by an older build can exist.  :meth:`ReconciliationService.sweep`
re-extracts each one's content, embeds it and attaches the vector.
"""

from __future__ import annotations

import structlog

from src.interfaces.record_store import IRecordStore
from src.services.content_extractor import ContentExtractor
from src.services.embedding_generator import EmbeddingGenerator
from src.utils.errors import LinkVaultError

logger = structlog.get_logger(logger_name=__name__)


class ReconciliationService:
    """Backfills missing embeddings; per-record failures are counted, not raised."""

    def __init__(
        self,
        store: IRecordStore,
        content_extractor: ContentExtractor,
        embedding_generator: EmbeddingGenerator,
    ) -> None:
        self._store = store
        self._content_extractor = content_extractor
        self._embedding_generator = embedding_generator

    async def sweep(self, limit: int = 100) -> dict[str, int]:
        """Process up to *limit* records lacking an embedding.

        Records that failed in an earlier sweep are retried only after
        every record not yet attempted.

        Returns
        -------
        dict
            ``{"scanned": n, "repaired": n, "failed": n}``.
        """
        pending = await self._store.list_records_missing_embedding(limit)
        repaired = failed = 0

        for record in pending:
            try:
                content = await self._content_extractor.extract(record.url)
                vector = await self._embedding_generator.generate(content)
                await self._store.set_embedding(record.id, vector)
            except LinkVaultError as exc:
                failed += 1
                logger.warning(
                    "reconcile_record_failed",
                    record_id=record.id,
                    error=str(exc),
                )
                await self._store.mark_embedding_attempt(record.id)
                continue
            repaired += 1

        stats = {"scanned": len(pending), "repaired": repaired, "failed": failed}
        logger.info("reconcile_sweep_complete", **stats)
        return stats
