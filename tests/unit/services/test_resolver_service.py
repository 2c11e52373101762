import pytest

from conftest import ts
from services.resolver_service import DispositionKind, PHASE_EXACT, PHASE_FUZZY, QueryResolver


@pytest.fixture
def resolver(media_repo, membership_repo):
    return QueryResolver(media_repo, membership_repo)


@pytest.mark.asyncio
class TestQueryResolver:
    async def test_empty_query_is_usage(self, resolver):
        for raw in (None, "", "   ", '""'):
            result = await resolver.resolve(raw, "42", "-1001", True)
            assert result.kind is DispositionKind.USAGE

    async def test_private_without_memberships(self, resolver):
        result = await resolver.resolve("Lesson", "42", "42", False)
        assert result.kind is DispositionKind.NO_SCOPE

    async def test_private_exact_in_two_chats_is_ambiguous(self, resolver, media_repo, membership_repo):
        await membership_repo.upsert_membership("42", "-1001", ts=ts(0), chat_title="A")
        await membership_repo.upsert_membership("42", "-1002", ts=ts(1), chat_title="B")
        await media_repo.upsert_media("-1001", "Lesson One", 11, chat_title="A", ts=ts(2))
        await media_repo.upsert_media("-1002", "Lesson One", 22, chat_title="B", ts=ts(3))

        result = await resolver.resolve("lesson one", "42", "42", False)
        assert result.kind is DispositionKind.AMBIGUOUS
        assert result.phase == PHASE_EXACT
        assert sorted(c.chat_id for c in result.candidates) == ["-1001", "-1002"]

    async def test_private_exact_single_chat_resolves(self, resolver, media_repo, membership_repo):
        await membership_repo.upsert_membership("42", "-1001", ts=ts(0))
        await media_repo.upsert_media("-1001", "Lesson One", 11, ts=ts(1))
        await media_repo.upsert_media("-1003", "Lesson One", 33, ts=ts(1))

        result = await resolver.resolve('"Lesson One"', "42", "42", False)
        assert result.kind is DispositionKind.RESOLVED
        assert result.phase == PHASE_EXACT
        assert (result.target.chat_id, result.target.message_id) == ("-1001", 11)

    async def test_group_fuzzy_single_hit_resolves(self, resolver, media_repo):
        await media_repo.upsert_media("-1001", "algebra-basics", 31, ts=ts(0))

        result = await resolver.resolve("algebra", "42", "-1001", True)
        assert result.kind is DispositionKind.RESOLVED
        assert result.phase == PHASE_FUZZY
        assert result.target.message_id == 31

    async def test_group_fuzzy_multiple_hits_is_ambiguous(self, resolver, media_repo):
        await media_repo.upsert_media("-1001", "algebra-basics", 31, ts=ts(0))
        await media_repo.upsert_media("-1001", "algebra-advanced", 32, ts=ts(1))

        result = await resolver.resolve("ALGEBRA", "42", "-1001", True)
        assert result.kind is DispositionKind.AMBIGUOUS
        assert [c.title for c in result.candidates] == ["algebra-advanced", "algebra-basics"]

    async def test_group_search_ignores_other_chats(self, resolver, media_repo):
        await media_repo.upsert_media("-1002", "Lesson One", 1, ts=ts(0))

        result = await resolver.resolve("Lesson One", "42", "-1001", True)
        assert result.kind is DispositionKind.NOT_FOUND
        assert result.query == "Lesson One"

    async def test_exact_phase_preempts_fuzzy(self, resolver, media_repo):
        await media_repo.upsert_media("-1001", "Lesson", 1, ts=ts(0))
        await media_repo.upsert_media("-1001", "Lesson Two", 2, ts=ts(1))

        result = await resolver.resolve("lesson", "42", "-1001", True)
        assert result.kind is DispositionKind.RESOLVED
        assert result.target.message_id == 1

    async def test_fuzzy_pool_stops_at_cap(self, media_repo, membership_repo):
        resolver = QueryResolver(media_repo, membership_repo, fuzzy_limit=5, pool_cap=6)
        for n, chat in enumerate(["-1001", "-1002", "-1003"]):
            await membership_repo.upsert_membership("42", chat, ts=ts(10 - n))
            for i in range(5):
                await media_repo.upsert_media(chat, f"Topic {i}", i + 1, ts=ts(i))

        result = await resolver.resolve("topic", "42", "42", False)
        assert result.kind is DispositionKind.AMBIGUOUS
        assert len(result.candidates) == 10
        assert {c.chat_id for c in result.candidates} == {"-1001", "-1002"}
