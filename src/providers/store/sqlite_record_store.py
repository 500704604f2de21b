"""SQLite-backed record store with in-process cosine search.

Persists saved links, the shared tag vocabulary and the record/tag links
to a local SQLite database at ``data/linkvault.db`` using ``aiosqlite``.
Embeddings live in a JSON column on the ``records`` row itself, so a
record and its vector are written in the same transaction and can never
drift apart.

Similarity search loads the owner's vectors and scores them with numpy.
That is linear in the owner's record count, which is fine for a personal
link collection; a dedicated vector index can replace this class behind
:class:`IRecordStore` without touching the services.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import numpy as np
import structlog

from src.interfaces.record_store import IRecordStore
from src.models.record import NewRecord, RankedRecord, Record, Tag
from src.utils.errors import RecordNotFoundError, StoreError
from src.utils.vectors import cosine_similarities, validate_embedding

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/linkvault.db")
_TAG_LOOKUP_BATCH = 500

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS records (
    id          TEXT PRIMARY KEY,
    owner_id    TEXT NOT NULL,
    url         TEXT NOT NULL,
    title       TEXT,
    hero_image  TEXT,
    domain      TEXT,
    summary     TEXT,
    embedding   TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    embedding_attempted_at TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS tags (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    name_key    TEXT NOT NULL UNIQUE,
    created_at  TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS record_tags (
    record_id   TEXT NOT NULL REFERENCES records(id) ON DELETE CASCADE,
    tag_id      TEXT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (record_id, tag_id)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_records_owner ON records(owner_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_records_missing_embedding "
    "ON records(embedding_attempted_at, created_at) "
    "WHERE embedding IS NULL;",
    "CREATE INDEX IF NOT EXISTS idx_record_tags_tag ON record_tags(tag_id);",
]

_RECORD_COLUMNS = (
    "id, owner_id, url, title, hero_image, domain, summary, embedding, created_at, updated_at"
)

_JOINED_RECORD_COLUMNS = ", ".join(f"r.{col.strip()}" for col in _RECORD_COLUMNS.split(","))

_INSERT_RECORD_SQL = f"""\
INSERT INTO records ({_RECORD_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPSERT_TAG_SQL = """\
INSERT INTO tags (id, name, name_key, created_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(name_key) DO NOTHING;
"""

_SELECT_TAG_SQL = "SELECT id, name, created_at FROM tags WHERE name_key = ?;"

_LINK_TAG_SQL = "INSERT OR IGNORE INTO record_tags (record_id, tag_id) VALUES (?, ?);"

_SEARCH_CANDIDATES_SQL = """\
SELECT id, url, title, domain, summary, embedding, created_at
FROM records
WHERE owner_id = ? AND embedding IS NOT NULL;
"""


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _tag_key(name: str) -> str:
    return name.strip().casefold()


class SQLiteRecordStore(IRecordStore):
    """SQLite persistence for records, tags and their embeddings.

    Parameters
    ----------
    db_path:
        Database file location; parent directories are created.
    embedding_dimension:
        Exact length every stored vector must have.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        embedding_dimension: int = 1536,
    ) -> None:
        self._db_path = Path(db_path)
        self._dimension = embedding_dimension
        # name_key -> Tag; tag rows are never renamed so entries never go stale.
        self._tag_cache: dict[str, Tag] = {}
        self._tag_lock = asyncio.Lock()

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection with row access by name and cascading deletes."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON;")
                yield db
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"SQLite error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("record_store_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def create_record(self, record: NewRecord) -> Record:
        embedding_json: str | None = None
        if record.embedding is not None:
            vector = validate_embedding(
                record.embedding, self._dimension, self.get_provider_name()
            )
            embedding_json = json.dumps(vector)

        record_id = uuid.uuid4().hex
        now = _utcnow()
        async with self._connect() as db:
            await db.execute(
                _INSERT_RECORD_SQL,
                (
                    record_id,
                    record.owner_id,
                    record.url,
                    record.title,
                    record.hero_image,
                    record.domain,
                    record.summary,
                    embedding_json,
                    now,
                    now,
                ),
            )
            await db.commit()
            row = await self._fetch_row(db, record_id, record.owner_id)

        logger.info(
            "record_created",
            record_id=record_id,
            owner_id=record.owner_id,
            has_embedding=embedding_json is not None,
        )
        return self._row_to_record(row, [])

    async def get_record(self, record_id: str, owner_id: str) -> Record:
        async with self._connect() as db:
            row = await self._fetch_row(db, record_id, owner_id)
            tags = await self._load_tags(db, [record_id])
        return self._row_to_record(row, tags.get(record_id, []))

    async def list_records(self, owner_id: str) -> list[Record]:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_RECORD_COLUMNS} FROM records WHERE owner_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (owner_id,),
            )
            rows = await cursor.fetchall()
            tags = await self._load_tags(db, [r["id"] for r in rows])
        return [self._row_to_record(r, tags.get(r["id"], [])) for r in rows]

    async def update_record(
        self,
        record_id: str,
        owner_id: str,
        *,
        title: str | None = None,
        summary: str | None = None,
    ) -> Record:
        assignments: list[str] = []
        params: list[Any] = []
        if title is not None:
            assignments.append("title = ?")
            params.append(title)
        if summary is not None:
            assignments.append("summary = ?")
            params.append(summary)
        assignments.append("updated_at = ?")
        params.append(_utcnow())

        async with self._connect() as db:
            cursor = await db.execute(
                f"UPDATE records SET {', '.join(assignments)} WHERE id = ? AND owner_id = ?",
                (*params, record_id, owner_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Link {record_id} not found")
            await db.commit()
            row = await self._fetch_row(db, record_id, owner_id)
            tags = await self._load_tags(db, [record_id])

        logger.info("record_updated", record_id=record_id, owner_id=owner_id)
        return self._row_to_record(row, tags.get(record_id, []))

    async def delete_record(self, record_id: str, owner_id: str) -> None:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM records WHERE id = ? AND owner_id = ?",
                (record_id, owner_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Link {record_id} not found")
            await db.commit()
        logger.info("record_deleted", record_id=record_id, owner_id=owner_id)

    async def delete_owner(self, owner_id: str) -> int:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM records WHERE owner_id = ?", (owner_id,))
            deleted = cursor.rowcount
            await db.commit()
        logger.info("owner_records_deleted", owner_id=owner_id, count=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    async def search_similar(
        self,
        query_vector: list[float],
        owner_id: str,
        top_k: int,
        similarity_floor: float,
    ) -> list[RankedRecord]:
        if top_k <= 0:
            return []

        async with self._connect() as db:
            cursor = await db.execute(_SEARCH_CANDIDATES_SQL, (owner_id,))
            rows = await cursor.fetchall()

        candidates: list[aiosqlite.Row] = []
        vectors: list[list[float]] = []
        for row in rows:
            vector = json.loads(row["embedding"])
            if len(vector) != len(query_vector):
                logger.warning(
                    "embedding_dimension_skipped",
                    record_id=row["id"],
                    expected=len(query_vector),
                    got=len(vector),
                )
                continue
            candidates.append(row)
            vectors.append(vector)

        # Opposed vectors clamp to 0.0 so reported similarity stays in [0, 1].
        scores = np.clip(cosine_similarities(query_vector, vectors), 0.0, 1.0)
        scored = [
            (float(score), row)
            for score, row in zip(scores, candidates)
            if similarity_floor <= 0.0 or float(score) > similarity_floor
        ]
        # Two stable sorts: newest first, then by similarity, so ties keep recency order.
        scored.sort(key=lambda item: item[1]["created_at"], reverse=True)
        scored.sort(key=lambda item: item[0], reverse=True)

        results = [
            RankedRecord(
                id=row["id"],
                url=row["url"],
                title=row["title"],
                domain=row["domain"],
                summary=row["summary"],
                created_at=row["created_at"],
                similarity=score,
            )
            for score, row in scored[:top_k]
        ]
        logger.debug(
            "similarity_search",
            owner_id=owner_id,
            candidates=len(candidates),
            returned=len(results),
            floor=similarity_floor,
        )
        return results

    async def list_records_missing_embedding(self, limit: int = 100) -> list[Record]:
        async with self._connect() as db:
            # Never-attempted rows (NULL) sort first, then the least recently tried.
            cursor = await db.execute(
                f"SELECT {_RECORD_COLUMNS} FROM records WHERE embedding IS NULL "
                "ORDER BY embedding_attempted_at ASC, created_at ASC, rowid ASC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
            tags = await self._load_tags(db, [r["id"] for r in rows])
        return [self._row_to_record(r, tags.get(r["id"], [])) for r in rows]

    async def set_embedding(self, record_id: str, embedding: list[float]) -> None:
        vector = validate_embedding(embedding, self._dimension, self.get_provider_name())
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE records SET embedding = ?, updated_at = ? WHERE id = ?",
                (json.dumps(vector), _utcnow(), record_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Link {record_id} not found")
            await db.commit()
        logger.info("record_embedding_set", record_id=record_id)

    async def mark_embedding_attempt(self, record_id: str) -> None:
        async with self._connect() as db:
            await db.execute(
                "UPDATE records SET embedding_attempted_at = ? WHERE id = ?",
                (_utcnow(), record_id),
            )
            await db.commit()

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def upsert_tag(self, name: str) -> Tag:
        display = name.strip()
        key = _tag_key(display)
        if not key:
            raise StoreError(
                message="Tag name must not be empty",
                provider_name=self.get_provider_name(),
            )
        cached = self._tag_cache.get(key)
        if cached is not None:
            return cached

        async with self._tag_lock:
            cached = self._tag_cache.get(key)
            if cached is not None:
                return cached
            async with self._connect() as db:
                await db.execute(_UPSERT_TAG_SQL, (uuid.uuid4().hex, display, key, _utcnow()))
                await db.commit()
                cursor = await db.execute(_SELECT_TAG_SQL, (key,))
                row = await cursor.fetchone()
            if row is None:
                raise StoreError(
                    message=f"Tag {display!r} vanished after upsert",
                    provider_name=self.get_provider_name(),
                )
            tag = Tag(id=row["id"], name=row["name"], created_at=row["created_at"])
            self._tag_cache[key] = tag
        return tag

    async def link_tags(self, record_id: str, tag_names: list[str]) -> list[str]:
        tags = [await self.upsert_tag(name) for name in tag_names]
        async with self._connect() as db:
            for tag in tags:
                await db.execute(_LINK_TAG_SQL, (record_id, tag.id))
            await db.commit()
        linked = [tag.name for tag in tags]
        logger.debug("record_tags_linked", record_id=record_id, tags=linked)
        return linked

    async def replace_tags(self, record_id: str, owner_id: str, tag_names: list[str]) -> list[str]:
        tags = [await self.upsert_tag(name) for name in tag_names]
        async with self._connect() as db:
            await self._fetch_row(db, record_id, owner_id)
            await db.execute("DELETE FROM record_tags WHERE record_id = ?", (record_id,))
            for tag in tags:
                await db.execute(_LINK_TAG_SQL, (record_id, tag.id))
            await db.commit()
        return [tag.name for tag in tags]

    async def list_tags(self) -> list[Tag]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, name, created_at FROM tags ORDER BY name COLLATE NOCASE"
            )
            rows = await cursor.fetchall()
        return [Tag(id=r["id"], name=r["name"], created_at=r["created_at"]) for r in rows]

    async def list_records_by_tag(self, tag_name: str, owner_id: str) -> tuple[Tag, list[Record]]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_TAG_SQL, (_tag_key(tag_name),))
            tag_row = await cursor.fetchone()
            if tag_row is None:
                raise RecordNotFoundError(f"Tag {tag_name!r} not found")

            cursor = await db.execute(
                f"SELECT {_JOINED_RECORD_COLUMNS} "
                "FROM records r JOIN record_tags rt ON rt.record_id = r.id "
                "WHERE rt.tag_id = ? AND r.owner_id = ? "
                "ORDER BY r.created_at DESC, r.rowid DESC",
                (tag_row["id"], owner_id),
            )
            rows = await cursor.fetchall()
            tags = await self._load_tags(db, [r["id"] for r in rows])

        tag = Tag(id=tag_row["id"], name=tag_row["name"], created_at=tag_row["created_at"])
        return tag, [self._row_to_record(r, tags.get(r["id"], [])) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite_record_store"

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    async def _fetch_row(
        self, db: aiosqlite.Connection, record_id: str, owner_id: str
    ) -> aiosqlite.Row:
        cursor = await db.execute(
            f"SELECT {_RECORD_COLUMNS} FROM records WHERE id = ? AND owner_id = ?",
            (record_id, owner_id),
        )
        row = await cursor.fetchone()
        if row is None:
            raise RecordNotFoundError(f"Link {record_id} not found")
        return row

    @staticmethod
    async def _load_tags(db: aiosqlite.Connection, record_ids: list[str]) -> dict[str, list[str]]:
        """Map each record id to its tag names in link order."""
        result: dict[str, list[str]] = {}
        # SQLite caps bound parameters per statement.
        for start in range(0, len(record_ids), _TAG_LOOKUP_BATCH):
            batch = record_ids[start : start + _TAG_LOOKUP_BATCH]
            placeholders = ", ".join("?" for _ in batch)
            cursor = await db.execute(
                "SELECT rt.record_id, t.name FROM record_tags rt "
                "JOIN tags t ON t.id = rt.tag_id "
                f"WHERE rt.record_id IN ({placeholders}) ORDER BY rt.rowid",
                batch,
            )
            for row in await cursor.fetchall():
                result.setdefault(row["record_id"], []).append(row["name"])
        return result

    @staticmethod
    def _row_to_record(row: aiosqlite.Row, tags: list[str]) -> Record:
        raw_embedding = row["embedding"]
        return Record(
            id=row["id"],
            owner_id=row["owner_id"],
            url=row["url"],
            title=row["title"],
            hero_image=row["hero_image"],
            domain=row["domain"],
            summary=row["summary"],
            embedding=json.loads(raw_embedding) if raw_embedding else None,
            tags=tags,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
