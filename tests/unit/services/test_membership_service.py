import pytest

from conftest import make_message, make_private_message
from services.membership_service import MembershipTracker


@pytest.mark.asyncio
class TestMembershipTracker:
    async def test_group_message_records_membership(self, membership_repo):
        tracker = MembershipTracker(membership_repo)

        assert await tracker.track(make_message(sender_id="42", chat_id="-1001")) is True
        chats = await membership_repo.list_chats_for_user("42")
        assert [c.chat_id for c in chats] == ["-1001"]
        assert chats[0].chat_title == "Algebra Group"

    async def test_private_bot_and_anonymous_are_skipped(self, membership_repo):
        tracker = MembershipTracker(membership_repo)

        assert await tracker.track(make_private_message()) is False
        assert await tracker.track(make_message(sender_is_bot=True)) is False
        assert await tracker.track(make_message(sender_id=None)) is False
        assert await membership_repo.list_chats_for_user("42") == []

    async def test_storage_failure_returns_false(self, membership_repo, db):
        from sqlalchemy import text
        async with db.engine.begin() as conn:
            await conn.execute(text("DROP TABLE chat_memberships"))

        tracker = MembershipTracker(membership_repo)
        assert await tracker.track(make_message()) is False
