"""Abstract base class for the saved-link record store.

The store is both the relational home of saved links and the vector index
the retrieval ranker searches.  Every read and search is scoped to one
owner; no method returns another owner's records.

Vector search contract (reproduced exactly by any replacement store):

* similarity is cosine similarity, ``1 - cosine_distance``, clamped to
  ``[0, 1]``;
* only the owner's records that carry an embedding are candidates;
* a candidate is returned only when ``similarity > similarity_floor``; a
  floor of ``0`` or below disables the threshold, so every embedded
  record is a candidate;
* results are ordered by descending similarity, ties broken by the most
  recent ``created_at``;
* at most ``top_k`` results are returned, and fewer candidates than
  ``top_k`` simply yields all of them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.record import NewRecord, RankedRecord, Record, Tag


# Concrete implementation: SQLiteRecordStore (src/providers/store/)
class IRecordStore(ABC):
    """Contract for record persistence and owner-scoped similarity search."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist.  Idempotent."""

    # -- Records ---------------------------------------------------------

    @abstractmethod
    async def create_record(self, record: NewRecord) -> Record:
        """Insert a record together with its embedding as one unit.

        Raises
        ------
        src.utils.errors.EmbeddingValidationError
            If ``record.embedding`` is present but has the wrong dimension
            or non-finite values.  Nothing is written.
        src.utils.errors.StoreError
            If the write fails.
        """

    @abstractmethod
    async def get_record(self, record_id: str, owner_id: str) -> Record:
        """Return one record owned by *owner_id*.

        Raises
        ------
        src.utils.errors.RecordNotFoundError
            If the record does not exist or belongs to another owner.
        """

    @abstractmethod
    async def list_records(self, owner_id: str) -> list[Record]:
        """Return all of *owner_id*'s records, newest first."""

    @abstractmethod
    async def update_record(
        self,
        record_id: str,
        owner_id: str,
        *,
        title: str | None = None,
        summary: str | None = None,
    ) -> Record:
        """Update the editable text fields; ``None`` leaves a field unchanged."""

    @abstractmethod
    async def delete_record(self, record_id: str, owner_id: str) -> None:
        """Delete a record and its tag links."""

    @abstractmethod
    async def delete_owner(self, owner_id: str) -> int:
        """Delete every record owned by *owner_id*; return how many went."""

    # -- Embeddings ------------------------------------------------------

    @abstractmethod
    async def search_similar(
        self,
        query_vector: list[float],
        owner_id: str,
        top_k: int,
        similarity_floor: float,
    ) -> list[RankedRecord]:
        """Return the owner's nearest records (see module docstring)."""

    @abstractmethod
    async def list_records_missing_embedding(self, limit: int = 100) -> list[Record]:
        """Return records of any owner that have no embedding.

        Records never tried come first, oldest first; then records by the
        time of their last failed backfill attempt.
        """

    @abstractmethod
    async def set_embedding(self, record_id: str, embedding: list[float]) -> None:
        """Attach a validated embedding to an existing record."""

    @abstractmethod
    async def mark_embedding_attempt(self, record_id: str) -> None:
        """Record a failed backfill so later sweeps try other records first."""

    # -- Tags ------------------------------------------------------------

    @abstractmethod
    async def upsert_tag(self, name: str) -> Tag:
        """Return the tag named *name*, creating it if needed.

        Matching is case-insensitive.  Concurrent calls with the same new
        name produce exactly one row and never raise.
        """

    @abstractmethod
    async def link_tags(self, record_id: str, tag_names: list[str]) -> list[str]:
        """Upsert each tag and link it to the record; return linked names."""

    @abstractmethod
    async def replace_tags(self, record_id: str, owner_id: str, tag_names: list[str]) -> list[str]:
        """Drop the record's existing tag links and link *tag_names* instead."""

    @abstractmethod
    async def list_tags(self) -> list[Tag]:
        """Return every tag, sorted by name."""

    @abstractmethod
    async def list_records_by_tag(self, tag_name: str, owner_id: str) -> tuple[Tag, list[Record]]:
        """Return the tag and *owner_id*'s records carrying it, newest first.

        Raises
        ------
        src.utils.errors.RecordNotFoundError
            If no tag with that name exists.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
