from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from core.helpers.error_handler import storage_guard
from models.base import utc_now_iso
from models.membership import MembershipRecord
from schemas.membership import MembershipDTO

logger = logging.getLogger(__name__)


class MembershipRepository:
    """用户-群组 出现记录仓库"""

    def __init__(self, db):
        self.db = db

    @storage_guard("membership.upsert")
    async def upsert_membership(
        self,
        user_id,
        chat_id,
        ts: Optional[datetime] = None,
        chat_title: Optional[str] = None,
    ) -> None:
        """
        记录一次出现

        last_seen 只前进不后退 (max)，chat_title 为空时保留旧值 (COALESCE)。
        """
        stmt = sqlite_insert(MembershipRecord).values(
            user_id=str(user_id),
            chat_id=str(chat_id),
            last_seen=utc_now_iso(ts),
            chat_title=chat_title,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MembershipRecord.user_id, MembershipRecord.chat_id],
            set_={
                "last_seen": func.max(MembershipRecord.last_seen, stmt.excluded.last_seen),
                "chat_title": func.coalesce(stmt.excluded.chat_title, MembershipRecord.chat_title),
            },
        )
        async with self.db.session() as session:
            await session.execute(stmt)

    @storage_guard("membership.list_chats")
    async def list_chats_for_user(self, user_id) -> List[MembershipDTO]:
        """用户出现过的群组，最近活跃的在前"""
        async with self.db.session() as session:
            stmt = (
                select(MembershipRecord)
                .filter(MembershipRecord.user_id == str(user_id))
                .order_by(MembershipRecord.last_seen.desc(), MembershipRecord.id.desc())
            )
            result = await session.execute(stmt)
            return [MembershipDTO.model_validate(r) for r in result.scalars().all()]

    @storage_guard("membership.is_member")
    async def is_member(self, user_id, chat_id) -> bool:
        async with self.db.session() as session:
            stmt = select(MembershipRecord.id).filter(
                MembershipRecord.user_id == str(user_id),
                MembershipRecord.chat_id == str(chat_id),
            ).limit(1)
            return (await session.execute(stmt)).scalar_one_or_none() is not None
