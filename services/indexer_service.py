"""
视频索引服务

从群组中的视频消息推导标题并写入 MediaRepository:
1. 优先使用 caption (规范化空白)
2. 否则使用文件名去掉最后一段扩展名

编辑事件走同样的推导，并以 (chat, 新标题) 为键写入。
标题变化时会产生第二条记录，旧记录保持不变。
"""

import logging
from typing import Optional

from core.context import trace_id_var
from core.helpers.error_handler import handle_errors
from core.helpers.title_utils import normalize_title, strip_extension
from listeners.event_adapters import InboundMessage
from repositories.media_repo import MediaRepository

logger = logging.getLogger(__name__)


def derive_title(message: InboundMessage) -> str:
    """caption 优先，其次文件名；两者都为空时返回空串"""
    title = normalize_title(message.caption)
    if not title and message.file_name:
        title = normalize_title(strip_extension(message.file_name))
    return title


def is_video_like(message: InboundMessage, include_edit_types: bool = False) -> bool:
    mime = message.mime_type or ""
    if message.is_video or (isinstance(mime, str) and mime.startswith("video/")):
        return True
    if include_edit_types:
        return message.is_animation or message.is_video_note
    return False


class MediaIndexer:
    def __init__(self, media_repo: MediaRepository):
        self.repo = media_repo

    async def index(self, message: InboundMessage) -> Optional[str]:
        """索引新消息，返回写入的标题；不符合条件时返回 None"""
        return await self._index(message, include_edit_types=False)

    async def index_edit(self, message: InboundMessage) -> Optional[str]:
        """caption 编辑后重新索引，额外接受 GIF 与圆形视频"""
        return await self._index(message, include_edit_types=True)

    @handle_errors(default_return=None, error_message="视频索引失败")
    async def _index(self, message: InboundMessage, include_edit_types: bool) -> Optional[str]:
        if not message.is_group:
            return None
        if not is_video_like(message, include_edit_types=include_edit_types):
            return None

        title = derive_title(message)
        if not title:
            logger.debug(f"[{trace_id_var.get()}] 跳过无标题视频: chat={message.chat_id} msg={message.message_id}")
            return None

        await self.repo.upsert_media(
            message.chat_id,
            title,
            message.message_id,
            chat_title=message.chat_title,
        )
        logger.info(
            f"[{trace_id_var.get()}] 📼 已索引: chat={message.chat_id} msg={message.message_id} "
            f"title='{title}'{' (编辑)' if message.is_edit else ''}"
        )
        return title
