"""
课程菜单分页服务
无状态：范围与偏移量全部由回调数据携带，服务本身不保存会话
"""
import logging
from dataclasses import dataclass, field
from typing import List

from core.helpers.callback_data import SCOPE_CHAT, SCOPE_USER
from repositories.media_repo import MediaRepository
from schemas.media import MediaRecordDTO

logger = logging.getLogger(__name__)


@dataclass
class MenuPage:
    scope: str
    scope_id: str
    total: int
    offset: int
    limit: int
    rows: List[MediaRecordDTO] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def has_prev(self) -> bool:
        return self.offset > 0

    @property
    def has_next(self) -> bool:
        return self.offset + self.limit < self.total

    @property
    def prev_offset(self) -> int:
        return max(0, self.offset - self.limit)

    @property
    def next_offset(self) -> int:
        return self.offset + self.limit

    @property
    def first_index(self) -> int:
        return self.offset + 1

    @property
    def last_index(self) -> int:
        return min(self.offset + self.limit, self.total)


class MenuPaginator:
    def __init__(self, media_repo: MediaRepository, page_size: int = 8):
        self.media_repo = media_repo
        self.page_size = page_size

    async def get_page(self, scope: str, scope_id, offset: int = 0) -> MenuPage:
        """
        获取一页课程

        scope=chat: 单个群组；scope=user: 用户所在全部群组。
        偏移量小于 0 时按 0 处理，超出末尾时回退到最后一页。
        """
        scope_id = str(scope_id)
        offset = max(0, int(offset or 0))

        if scope == SCOPE_CHAT:
            total = await self.media_repo.count_media(scope_id)
        elif scope == SCOPE_USER:
            total = await self.media_repo.count_media_for_user(scope_id)
        else:
            raise ValueError(f"unknown menu scope: {scope}")

        if total == 0:
            return MenuPage(scope, scope_id, total=0, offset=0, limit=self.page_size)

        if offset >= total:
            offset = ((total - 1) // self.page_size) * self.page_size

        if scope == SCOPE_CHAT:
            rows = await self.media_repo.list_media(scope_id, self.page_size, offset)
        else:
            rows = await self.media_repo.list_media_for_user(scope_id, self.page_size, offset)

        logger.debug(f"[Menu] {scope}={scope_id} offset={offset} rows={len(rows)}/{total}")
        return MenuPage(scope, scope_id, total=total, offset=offset, limit=self.page_size, rows=rows)
