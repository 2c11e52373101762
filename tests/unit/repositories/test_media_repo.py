import asyncio

import pytest
from sqlalchemy import text

from conftest import ts
from core.exceptions import StorageError, ValidationError


@pytest.mark.asyncio
class TestMediaRepository:
    async def test_upsert_and_exact_lookup_case_insensitive(self, media_repo):
        await media_repo.upsert_media("1001", "Lesson One", 11, chat_title="Math", ts=ts(0))

        hit = await media_repo.get_exact("1001", "lesson one")
        assert hit is not None
        assert hit.title == "Lesson One"
        assert hit.message_id == 11
        assert hit.chat_title == "Math"

        assert await media_repo.get_exact("1001", "  LESSON   one ") is not None
        assert await media_repo.get_exact("2002", "lesson one") is None

    async def test_same_title_replaces_reference_last_write_wins(self, media_repo):
        await media_repo.upsert_media("1001", "Lesson One", 11, chat_title="Old", ts=ts(0))
        await media_repo.upsert_media("1001", "LESSON one", 12, chat_title="New", ts=ts(10))

        assert await media_repo.count_media("1001") == 1
        hit = await media_repo.get_exact("1001", "lesson one")
        assert hit.message_id == 12
        assert hit.chat_title == "New"
        assert hit.title == "LESSON one"
        assert hit.created_at.startswith("2025-01-01T12:00:10")

    async def test_concurrent_upserts_keep_one_record(self, media_repo):
        await asyncio.gather(*[
            media_repo.upsert_media("1001", "Same Title", i, ts=ts(i)) for i in range(1, 11)
        ])
        assert await media_repo.count_media("1001") == 1

    async def test_empty_title_rejected(self, media_repo):
        with pytest.raises(ValidationError):
            await media_repo.upsert_media("1001", "   ", 1)

    async def test_fuzzy_search_substring_newest_first_capped(self, media_repo):
        for i in range(7):
            await media_repo.upsert_media("1001", f"Algebra part {i}", 100 + i, ts=ts(i))
        await media_repo.upsert_media("1001", "Geometry", 200, ts=ts(50))
        await media_repo.upsert_media("2002", "Algebra elsewhere", 300, ts=ts(60))

        hits = await media_repo.search_fuzzy("1001", "ALGEBRA")
        assert [h.message_id for h in hits] == [106, 105, 104, 103, 102]
        assert all("algebra" in h.title.lower() for h in hits)

    async def test_fuzzy_search_respects_explicit_limit(self, media_repo):
        for i in range(4):
            await media_repo.upsert_media("1001", f"Physics {i}", i + 1, ts=ts(i))
        assert len(await media_repo.search_fuzzy("1001", "phys", limit=2)) == 2
        assert await media_repo.search_fuzzy("1001", "   ") == []

    async def test_fuzzy_search_treats_wildcards_literally(self, media_repo):
        await media_repo.upsert_media("1001", "100% Algebra", 1, ts=ts(0))
        await media_repo.upsert_media("1001", "Algebra", 2, ts=ts(1))
        hits = await media_repo.search_fuzzy("1001", "%")
        assert [h.message_id for h in hits] == [1]

    async def test_list_and_count_media_paged(self, media_repo):
        for i in range(10):
            await media_repo.upsert_media("1001", f"Video {i}", i, ts=ts(i))

        first = await media_repo.list_media("1001", 4, 0)
        second = await media_repo.list_media("1001", 4, 4)
        assert [r.message_id for r in first] == [9, 8, 7, 6]
        assert [r.message_id for r in second] == [5, 4, 3, 2]
        assert await media_repo.count_media("1001") == 10
        assert await media_repo.count_media("9999") == 0

    async def test_list_media_for_user_joins_memberships(self, media_repo, membership_repo):
        await membership_repo.upsert_membership("42", "1001", ts=ts(0))
        await membership_repo.upsert_membership("42", "2002", ts=ts(0))
        await media_repo.upsert_media("1001", "A", 1, ts=ts(1))
        await media_repo.upsert_media("2002", "B", 2, ts=ts(3))
        await media_repo.upsert_media("3003", "C", 3, ts=ts(5))

        rows = await media_repo.list_media_for_user("42", 10, 0)
        assert [(r.chat_id, r.title) for r in rows] == [("2002", "B"), ("1001", "A")]
        assert await media_repo.count_media_for_user("42") == 2
        assert await media_repo.count_media_for_user("7") == 0

    async def test_storage_fault_surfaces_as_storage_error(self, media_repo, db):
        async with db.engine.begin() as conn:
            await conn.execute(text("DROP TABLE media_records"))

        with pytest.raises(StorageError):
            await media_repo.upsert_media("1001", "Lost", 1)
