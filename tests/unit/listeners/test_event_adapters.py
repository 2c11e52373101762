from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from listeners.event_adapters import event_adapter


def telethon_event(text="", media=None, video=False, gif=False, video_note=False,
                   file_name=None, mime_type=None, chat_id=-1001, sender_id=42,
                   is_group=True, bot=False, title="Algebra Group"):
    message = SimpleNamespace(
        id=10,
        message=text,
        media=media,
        video=video,
        gif=gif,
        video_note=video_note,
        document=SimpleNamespace(mime_type=mime_type) if media else None,
        file=SimpleNamespace(name=file_name) if media else None,
    )
    event = MagicMock()
    event.message = message
    event.chat_id = chat_id
    event.sender_id = sender_id
    event.is_group = is_group
    event.is_private = not is_group
    event.get_chat = AsyncMock(return_value=SimpleNamespace(title=title) if is_group else SimpleNamespace())
    event.get_sender = AsyncMock(return_value=SimpleNamespace(bot=bot))
    return event


@pytest.mark.asyncio
class TestEventAdapter:
    async def test_plain_group_text(self):
        msg = await event_adapter.adapt_message(telethon_event(text="/find algebra"))

        assert msg.chat_id == "-1001"
        assert msg.chat_title == "Algebra Group"
        assert msg.sender_id == "42"
        assert msg.text == "/find algebra"
        assert msg.caption is None
        assert not msg.has_media

    async def test_video_with_caption(self):
        event = telethon_event(text="Lesson One", media=object(), video=True,
                               file_name="lesson.mp4", mime_type="video/mp4")
        msg = await event_adapter.adapt_message(event)

        assert msg.is_video and not msg.is_animation
        assert msg.caption == "Lesson One"
        assert msg.file_name == "lesson.mp4"
        assert msg.mime_type == "video/mp4"
        assert msg.has_media

    async def test_gif_and_round_video_are_not_native_video(self):
        gif = await event_adapter.adapt_message(telethon_event(media=object(), video=True, gif=True))
        note = await event_adapter.adapt_message(telethon_event(media=object(), video=True, video_note=True))

        assert gif.is_animation and not gif.is_video
        assert note.is_video_note and not note.is_video

    async def test_private_bot_sender_and_edit_flag(self):
        event = telethon_event(chat_id=42, is_group=False, bot=True)
        msg = await event_adapter.adapt_message(event, is_edit=True)

        assert msg.is_private and not msg.is_group
        assert msg.chat_title is None
        assert msg.sender_is_bot
        assert msg.is_edit

    async def test_callback(self):
        event = MagicMock()
        event.query = SimpleNamespace(query_id=123456789)
        event.data = b"L|-1001|5"
        event.chat_id = 42
        event.sender_id = 42
        event.message_id = 77
        event.is_private = True

        callback = await event_adapter.adapt_callback(event)

        assert callback.query_id == "123456789"
        assert callback.data == b"L|-1001|5"
        assert callback.chat_id == "42"
        assert callback.is_private
