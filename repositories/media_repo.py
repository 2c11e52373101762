from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from core.exceptions import ValidationError
from core.helpers.error_handler import storage_guard
from core.helpers.title_utils import normalize_title, title_key
from models.base import utc_now_iso
from models.media import MediaRecord
from models.membership import MembershipRecord
from schemas.media import MediaRecordDTO

logger = logging.getLogger(__name__)


class MediaRepository:
    """已索引视频的数据仓库 (chat -> title -> message_id)"""

    def __init__(self, db, fuzzy_limit: int = 5):
        self.db = db
        self.fuzzy_limit = fuzzy_limit

    @storage_guard("media.upsert")
    async def upsert_media(
        self,
        chat_id,
        title: str,
        message_id: int,
        chat_title: Optional[str] = None,
        ts: Optional[datetime] = None,
    ) -> None:
        """
        新增或覆盖一条记录 (last-write-wins)

        冲突键为 (chat_id, title_key)，单条 INSERT ... ON CONFLICT 语句保证并发下不丢更新。
        """
        display = normalize_title(title)
        key = title_key(display)
        if not key:
            raise ValidationError("empty title", context={"chat_id": str(chat_id)})

        stmt = sqlite_insert(MediaRecord).values(
            chat_id=str(chat_id),
            title=display,
            title_key=key,
            message_id=int(message_id),
            chat_title=chat_title,
            created_at=utc_now_iso(ts),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MediaRecord.chat_id, MediaRecord.title_key],
            set_={
                "title": stmt.excluded.title,
                "message_id": stmt.excluded.message_id,
                "chat_title": stmt.excluded.chat_title,
                "created_at": stmt.excluded.created_at,
            },
        )
        async with self.db.session() as session:
            await session.execute(stmt)
        logger.debug(f"[MediaRepo] upsert chat={chat_id} title='{display}' msg={message_id}")

    @storage_guard("media.get_exact")
    async def get_exact(self, chat_id, title: str) -> Optional[MediaRecordDTO]:
        """大小写无关的精确匹配"""
        key = title_key(title)
        if not key:
            return None
        async with self.db.session() as session:
            stmt = select(MediaRecord).filter(
                MediaRecord.chat_id == str(chat_id),
                MediaRecord.title_key == key,
            ).limit(1)
            result = await session.execute(stmt)
            obj = result.scalar_one_or_none()
            return MediaRecordDTO.model_validate(obj) if obj else None

    @storage_guard("media.search_fuzzy")
    async def search_fuzzy(self, chat_id, substring: str, limit: Optional[int] = None) -> List[MediaRecordDTO]:
        """子串匹配，按时间倒序，每个群组最多 limit 条"""
        key = title_key(substring)
        if not key:
            return []
        async with self.db.session() as session:
            stmt = (
                select(MediaRecord)
                .filter(
                    MediaRecord.chat_id == str(chat_id),
                    func.instr(MediaRecord.title_key, key) > 0,
                )
                .order_by(MediaRecord.created_at.desc(), MediaRecord.id.desc())
                .limit(limit or self.fuzzy_limit)
            )
            result = await session.execute(stmt)
            return [MediaRecordDTO.model_validate(r) for r in result.scalars().all()]

    @storage_guard("media.list")
    async def list_media(self, chat_id, limit: int, offset: int = 0) -> List[MediaRecordDTO]:
        async with self.db.session() as session:
            stmt = (
                select(MediaRecord)
                .filter(MediaRecord.chat_id == str(chat_id))
                .order_by(MediaRecord.created_at.desc(), MediaRecord.id.desc())
                .limit(limit)
                .offset(max(0, offset))
            )
            result = await session.execute(stmt)
            return [MediaRecordDTO.model_validate(r) for r in result.scalars().all()]

    @storage_guard("media.count")
    async def count_media(self, chat_id) -> int:
        async with self.db.session() as session:
            stmt = select(func.count(MediaRecord.id)).filter(MediaRecord.chat_id == str(chat_id))
            return (await session.execute(stmt)).scalar() or 0

    @storage_guard("media.list_for_user")
    async def list_media_for_user(self, user_id, limit: int, offset: int = 0) -> List[MediaRecordDTO]:
        """用户所在全部群组的视频，跨群组按时间倒序"""
        async with self.db.session() as session:
            stmt = (
                select(MediaRecord)
                .join(MembershipRecord, MembershipRecord.chat_id == MediaRecord.chat_id)
                .filter(MembershipRecord.user_id == str(user_id))
                .order_by(MediaRecord.created_at.desc(), MediaRecord.id.desc())
                .limit(limit)
                .offset(max(0, offset))
            )
            result = await session.execute(stmt)
            return [MediaRecordDTO.model_validate(r) for r in result.scalars().all()]

    @storage_guard("media.count_for_user")
    async def count_media_for_user(self, user_id) -> int:
        async with self.db.session() as session:
            stmt = (
                select(func.count(MediaRecord.id))
                .select_from(MediaRecord)
                .join(MembershipRecord, MembershipRecord.chat_id == MediaRecord.chat_id)
                .filter(MembershipRecord.user_id == str(user_id))
            )
            return (await session.execute(stmt)).scalar() or 0
