"""Unit tests for SQLiteRecordStore.

Tests cover: record CRUD with owner scoping, embedding validation on
write, similarity search ordering / floor / top_k, tag upsert and
linking, cascading deletes and the missing-embedding sweep queries.

Each test uses a temporary SQLite database to ensure isolation.
"""

from __future__ import annotations

import asyncio
import math
from pathlib import Path

import pytest

from src.models.record import NewRecord
from src.providers.store.sqlite_record_store import SQLiteRecordStore
from src.utils.errors import EmbeddingValidationError, RecordNotFoundError, StoreError


def _new(owner: str = "alice", url: str = "https://example.com/a", embedding=None, **kwargs) -> NewRecord:
    return NewRecord(owner_id=owner, url=url, embedding=embedding, **kwargs)


# ═══════════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════════


class TestCreateAndGet:
    @pytest.mark.asyncio
    async def test_create_returns_persisted_record(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        record = await record_store.create_record(
            _new(title="WAL", domain="example.com", summary="About WAL", embedding=axis_vector(0))
        )
        assert record.id
        assert record.owner_id == "alice"
        assert record.title == "WAL"
        assert record.tags == []
        assert record.embedding == pytest.approx(axis_vector(0))
        assert record.created_at == record.updated_at

    @pytest.mark.asyncio
    async def test_get_round_trips_fields(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new(hero_image="https://example.com/i.png"))
        fetched = await record_store.get_record(created.id, "alice")
        assert fetched.hero_image == "https://example.com/i.png"
        assert fetched.embedding is None
        assert fetched.has_embedding is False

    @pytest.mark.asyncio
    async def test_get_for_other_owner_is_not_found(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        with pytest.raises(RecordNotFoundError):
            await record_store.get_record(created.id, "mallory")

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, record_store: SQLiteRecordStore) -> None:
        with pytest.raises(RecordNotFoundError):
            await record_store.get_record("nope", "alice")

    @pytest.mark.asyncio
    async def test_rejects_wrong_dimension_and_writes_nothing(self, record_store: SQLiteRecordStore) -> None:
        with pytest.raises(EmbeddingValidationError):
            await record_store.create_record(_new(embedding=[1.0, 0.0]))
        assert await record_store.list_records("alice") == []

    @pytest.mark.asyncio
    async def test_rejects_non_finite_embedding(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        vector = axis_vector(0)
        vector[3] = math.inf
        with pytest.raises(EmbeddingValidationError):
            await record_store.create_record(_new(embedding=vector))

    @pytest.mark.asyncio
    async def test_duplicate_urls_are_separate_records(self, record_store: SQLiteRecordStore) -> None:
        first = await record_store.create_record(_new())
        second = await record_store.create_record(_new())
        assert first.id != second.id
        assert len(await record_store.list_records("alice")) == 2


class TestListUpdateDelete:
    @pytest.mark.asyncio
    async def test_list_is_owner_scoped_newest_first(self, record_store: SQLiteRecordStore) -> None:
        older = await record_store.create_record(_new(url="https://example.com/1"))
        newer = await record_store.create_record(_new(url="https://example.com/2"))
        await record_store.create_record(_new(owner="bob", url="https://example.com/3"))

        records = await record_store.list_records("alice")
        assert [r.id for r in records] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new(title="Old", summary="Keep me"))
        updated = await record_store.update_record(created.id, "alice", title="New")
        assert updated.title == "New"
        assert updated.summary == "Keep me"
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_update_other_owner_is_not_found(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        with pytest.raises(RecordNotFoundError):
            await record_store.update_record(created.id, "bob", title="Hijack")

    @pytest.mark.asyncio
    async def test_delete_removes_record_and_tag_links(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        await record_store.link_tags(created.id, ["Blog"])

        await record_store.delete_record(created.id, "alice")

        with pytest.raises(RecordNotFoundError):
            await record_store.get_record(created.id, "alice")
        tag, records = await record_store.list_records_by_tag("Blog", "alice")
        assert tag.name == "Blog"
        assert records == []

    @pytest.mark.asyncio
    async def test_delete_other_owner_is_not_found(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        with pytest.raises(RecordNotFoundError):
            await record_store.delete_record(created.id, "bob")
        assert (await record_store.get_record(created.id, "alice")).id == created.id

    @pytest.mark.asyncio
    async def test_delete_owner_removes_only_their_records(self, record_store: SQLiteRecordStore) -> None:
        await record_store.create_record(_new())
        await record_store.create_record(_new(url="https://example.com/b"))
        await record_store.create_record(_new(owner="bob"))

        assert await record_store.delete_owner("alice") == 2
        assert await record_store.list_records("alice") == []
        assert len(await record_store.list_records("bob")) == 1


# ═══════════════════════════════════════════════════════════════════════
# Similarity search
# ═══════════════════════════════════════════════════════════════════════


class TestSearchSimilar:
    @pytest.mark.asyncio
    async def test_orders_by_similarity(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        far = await record_store.create_record(_new(url="https://a.example.com", embedding=axis_vector(0, weight=0.5)))
        near = await record_store.create_record(_new(url="https://b.example.com", embedding=axis_vector(0, weight=0.9)))
        exact = await record_store.create_record(_new(url="https://c.example.com", embedding=axis_vector(0)))

        ranked = await record_store.search_similar(axis_vector(0), "alice", top_k=5, similarity_floor=0.0)

        assert [r.id for r in ranked] == [exact.id, near.id, far.id]
        assert ranked[0].similarity == pytest.approx(1.0)
        assert ranked[0].relevance_score == 100

    @pytest.mark.asyncio
    async def test_limits_to_top_k(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        for i in range(4):
            await record_store.create_record(_new(url=f"https://{i}.example.com", embedding=axis_vector(0, weight=0.9)))
        ranked = await record_store.search_similar(axis_vector(0), "alice", top_k=2, similarity_floor=0.0)
        assert len(ranked) == 2

    @pytest.mark.asyncio
    async def test_zero_floor_returns_every_embedded_record(
        self, record_store: SQLiteRecordStore, axis_vector
    ) -> None:
        orthogonal = await record_store.create_record(
            _new(url="https://orthogonal.example.com", embedding=axis_vector(4))
        )
        match = await record_store.create_record(_new(url="https://match.example.com", embedding=axis_vector(0)))

        ranked = await record_store.search_similar(axis_vector(0), "alice", top_k=5, similarity_floor=0.0)

        assert [r.id for r in ranked] == [match.id, orthogonal.id]
        assert ranked[1].similarity == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_positive_floor_excludes_low_scores(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        await record_store.create_record(_new(url="https://orthogonal.example.com", embedding=axis_vector(4)))
        keep = await record_store.create_record(_new(url="https://match.example.com", embedding=axis_vector(0)))

        ranked = await record_store.search_similar(axis_vector(0), "alice", top_k=5, similarity_floor=0.1)
        assert [r.id for r in ranked] == [keep.id]

    @pytest.mark.asyncio
    async def test_opposed_vectors_clamp_to_zero(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        opposed = await record_store.create_record(_new(embedding=axis_vector(0, weight=-1.0)))

        ranked = await record_store.search_similar(axis_vector(0), "alice", top_k=5, similarity_floor=0.0)

        assert [r.id for r in ranked] == [opposed.id]
        assert ranked[0].similarity == 0.0
        assert ranked[0].relevance_score == 0

    @pytest.mark.asyncio
    async def test_ties_prefer_newest(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        older = await record_store.create_record(_new(url="https://old.example.com", embedding=axis_vector(2)))
        await asyncio.sleep(0.01)
        newer = await record_store.create_record(_new(url="https://new.example.com", embedding=axis_vector(2)))

        ranked = await record_store.search_similar(axis_vector(2), "alice", top_k=5, similarity_floor=0.0)
        assert [r.id for r in ranked] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_scoped_to_owner(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        await record_store.create_record(_new(owner="bob", embedding=axis_vector(0)))
        ranked = await record_store.search_similar(axis_vector(0), "alice", top_k=5, similarity_floor=0.0)
        assert ranked == []

    @pytest.mark.asyncio
    async def test_skips_records_without_embedding(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        await record_store.create_record(_new())
        ranked = await record_store.search_similar(axis_vector(0), "alice", top_k=5, similarity_floor=-1.0)
        assert ranked == []

    @pytest.mark.asyncio
    async def test_zero_top_k_returns_nothing(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        await record_store.create_record(_new(embedding=axis_vector(0)))
        assert await record_store.search_similar(axis_vector(0), "alice", top_k=0, similarity_floor=0.0) == []


class TestMissingEmbeddings:
    @pytest.mark.asyncio
    async def test_lists_oldest_first_and_set_embedding_repairs(
        self, record_store: SQLiteRecordStore, axis_vector
    ) -> None:
        first = await record_store.create_record(_new(url="https://1.example.com"))
        second = await record_store.create_record(_new(url="https://2.example.com"))
        await record_store.create_record(_new(url="https://3.example.com", embedding=axis_vector(1)))

        pending = await record_store.list_records_missing_embedding()
        assert [r.id for r in pending] == [first.id, second.id]

        await record_store.set_embedding(first.id, axis_vector(5))
        pending = await record_store.list_records_missing_embedding()
        assert [r.id for r in pending] == [second.id]
        assert (await record_store.get_record(first.id, "alice")).embedding == pytest.approx(axis_vector(5))

    @pytest.mark.asyncio
    async def test_attempted_records_move_behind_untried_ones(self, record_store: SQLiteRecordStore) -> None:
        first = await record_store.create_record(_new(url="https://1.example.com"))
        second = await record_store.create_record(_new(url="https://2.example.com"))
        third = await record_store.create_record(_new(url="https://3.example.com"))

        await record_store.mark_embedding_attempt(first.id)
        await asyncio.sleep(0.01)
        await record_store.mark_embedding_attempt(second.id)

        pending = await record_store.list_records_missing_embedding()
        assert [r.id for r in pending] == [third.id, first.id, second.id]

    @pytest.mark.asyncio
    async def test_set_embedding_validates(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        with pytest.raises(EmbeddingValidationError):
            await record_store.set_embedding(created.id, [1.0])

    @pytest.mark.asyncio
    async def test_set_embedding_unknown_record(self, record_store: SQLiteRecordStore, axis_vector) -> None:
        with pytest.raises(RecordNotFoundError):
            await record_store.set_embedding("missing", axis_vector(0))


# ═══════════════════════════════════════════════════════════════════════
# Tags
# ═══════════════════════════════════════════════════════════════════════


class TestTags:
    @pytest.mark.asyncio
    async def test_upsert_is_case_insensitive(self, record_store: SQLiteRecordStore) -> None:
        first = await record_store.upsert_tag("Tutorial")
        second = await record_store.upsert_tag("tutorial")
        assert first.id == second.id
        assert second.name == "Tutorial"

    @pytest.mark.asyncio
    async def test_concurrent_upserts_create_one_row(self, record_store: SQLiteRecordStore) -> None:
        tags = await asyncio.gather(*(record_store.upsert_tag("News") for _ in range(10)))
        assert len({t.id for t in tags}) == 1
        assert [t.name for t in await record_store.list_tags()] == ["News"]

    @pytest.mark.asyncio
    async def test_concurrent_upserts_across_store_instances(self, tmp_path: Path) -> None:
        db_path = tmp_path / "shared.db"
        first = SQLiteRecordStore(db_path=db_path, embedding_dimension=8)
        await first.initialize()
        second = SQLiteRecordStore(db_path=db_path, embedding_dimension=8)
        a, b = await asyncio.gather(first.upsert_tag("Video"), second.upsert_tag("VIDEO"))
        assert a.id == b.id

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, record_store: SQLiteRecordStore) -> None:
        with pytest.raises(StoreError):
            await record_store.upsert_tag("   ")

    @pytest.mark.asyncio
    async def test_link_tags_preserves_order_and_ignores_repeats(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        assert await record_store.link_tags(created.id, ["Tool", "Blog"]) == ["Tool", "Blog"]
        await record_store.link_tags(created.id, ["Blog"])
        assert (await record_store.get_record(created.id, "alice")).tags == ["Tool", "Blog"]

    @pytest.mark.asyncio
    async def test_replace_tags(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        await record_store.link_tags(created.id, ["Tool", "Blog"])
        assert await record_store.replace_tags(created.id, "alice", ["News"]) == ["News"]
        assert (await record_store.get_record(created.id, "alice")).tags == ["News"]

    @pytest.mark.asyncio
    async def test_replace_tags_other_owner(self, record_store: SQLiteRecordStore) -> None:
        created = await record_store.create_record(_new())
        with pytest.raises(RecordNotFoundError):
            await record_store.replace_tags(created.id, "bob", ["News"])

    @pytest.mark.asyncio
    async def test_records_by_tag_scoped_to_owner(self, record_store: SQLiteRecordStore) -> None:
        mine = await record_store.create_record(_new())
        theirs = await record_store.create_record(_new(owner="bob"))
        await record_store.link_tags(mine.id, ["Research"])
        await record_store.link_tags(theirs.id, ["Research"])

        tag, records = await record_store.list_records_by_tag("research", "alice")
        assert tag.name == "Research"
        assert [r.id for r in records] == [mine.id]
        assert records[0].tags == ["Research"]

    @pytest.mark.asyncio
    async def test_unknown_tag_is_not_found(self, record_store: SQLiteRecordStore) -> None:
        with pytest.raises(RecordNotFoundError):
            await record_store.list_records_by_tag("Cooking", "alice")

    @pytest.mark.asyncio
    async def test_list_tags_sorted_by_name(self, record_store: SQLiteRecordStore) -> None:
        for name in ("Video", "article", "News"):
            await record_store.upsert_tag(name)
        assert [t.name for t in await record_store.list_tags()] == ["article", "News", "Video"]
