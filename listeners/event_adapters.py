"""
事件适配器模块

将 Telethon 事件转换为与框架无关的入站事件，业务服务只依赖这里的数据类。
"""

from __future__ import annotations
import logging
from typing import Any, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class InboundMessage:
    """标准化入站消息 (新消息或编辑)"""
    original_event: Any
    chat_id: str
    chat_title: Optional[str]
    is_group: bool
    is_private: bool
    sender_id: Optional[str]
    sender_is_bot: bool
    message_id: int
    text: str = ""
    caption: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    is_video: bool = False
    is_animation: bool = False
    is_video_note: bool = False
    is_edit: bool = False

    @property
    def has_media(self) -> bool:
        return bool(self.is_video or self.is_animation or self.is_video_note or self.mime_type or self.file_name)


@dataclass
class InboundCallback:
    """标准化按钮回调"""
    original_event: Any
    query_id: str
    data: bytes
    chat_id: str
    sender_id: str
    message_id: int
    is_private: bool


class TelegramEventAdapter:
    """Telegram 事件适配器"""

    async def adapt_message(self, event: Any, is_edit: bool = False) -> InboundMessage:
        message = event.message
        chat = await event.get_chat()
        sender = await event.get_sender()

        media = message.media is not None
        document = getattr(message, "document", None) if media else None
        file = getattr(message, "file", None) if media else None

        gif = bool(media and message.gif)
        round_video = bool(media and message.video_note)
        native_video = bool(media and message.video) and not gif and not round_video

        return InboundMessage(
            original_event=event,
            chat_id=str(event.chat_id),
            chat_title=getattr(chat, "title", None),
            is_group=bool(event.is_group),
            is_private=bool(event.is_private),
            sender_id=str(event.sender_id) if event.sender_id is not None else None,
            sender_is_bot=bool(getattr(sender, "bot", False)),
            message_id=message.id,
            text=message.message or "",
            caption=(message.message or None) if media else None,
            file_name=getattr(file, "name", None),
            mime_type=getattr(document, "mime_type", None),
            is_video=native_video,
            is_animation=gif,
            is_video_note=round_video,
            is_edit=is_edit,
        )

    async def adapt_callback(self, event: Any) -> InboundCallback:
        return InboundCallback(
            original_event=event,
            query_id=str(event.query.query_id),
            data=event.data or b"",
            chat_id=str(event.chat_id),
            sender_id=str(event.sender_id),
            message_id=event.message_id,
            is_private=bool(event.is_private),
        )


event_adapter = TelegramEventAdapter()
