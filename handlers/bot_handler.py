import logging
import re
from typing import Optional, Tuple

from core.exceptions import StorageError, TransportError
from core.logging import correlation_context
from listeners.event_adapters import InboundCallback, InboundMessage, event_adapter

from .button.callback_handlers import handle_callback, safe_answer
from .commands.help_commands import handle_help_command
from .commands.menu_commands import handle_menu_command
from .commands.search_commands import handle_find_command
from ui.constants import STORAGE_ERROR_TEXT, UNEXPECTED_ERROR_TEXT

logger = logging.getLogger(__name__)

_COMMAND_RE = re.compile(r"^/([A-Za-z0-9_]+)(?:@([A-Za-z0-9_]+))?(?:\s+(.*))?$", re.DOTALL)


def parse_command(text: str) -> Optional[Tuple[str, Optional[str], str]]:
    """'/find@Bot  a b' -> ('find', 'Bot', 'a b')；非命令返回 None"""
    m = _COMMAND_RE.match((text or "").strip())
    if not m:
        return None
    return m.group(1).lower(), m.group(2), (m.group(3) or "").strip()


async def handle_message(client, event, container, is_edit: bool = False) -> None:
    """
    入站消息总入口

    顺序: 成员记录 -> 视频索引 -> 命令分发。
    成员记录与索引失败只写日志，不影响命令处理。
    """
    with correlation_context() as trace_id:
        message: Optional[InboundMessage] = None
        try:
            message = await event_adapter.adapt_message(event, is_edit=is_edit)
            await container.membership_tracker.track(message)

            if is_edit:
                await container.indexer.index_edit(message)
                return

            if message.has_media:
                await container.indexer.index(message)

            await dispatch_command(client, message, container)
        except Exception as e:
            await report_failure(client, message, container, e, trace_id)


async def dispatch_command(client, message: InboundMessage, container) -> bool:
    text = (message.text or "").strip()
    if not text:
        return False

    if text == container.settings.MENU_BUTTON_LABEL:
        await handle_menu_command(client, message, container)
        return True

    parsed = parse_command(text)
    if not parsed:
        return False
    command, mention, args = parsed

    bot_username = getattr(container, "bot_username", None)
    if mention and bot_username and mention.lower() != bot_username.lower():
        logger.debug(f"忽略发给其他机器人的命令: /{command}@{mention}")
        return False

    command_handlers = {
        "find": lambda: handle_find_command(client, message, args, container),
        "darslar": lambda: handle_menu_command(client, message, container),
        "help": lambda: handle_help_command(client, message, container),
        "start": lambda: handle_help_command(client, message, container),
    }

    handler = command_handlers.get(command)
    if not handler:
        return False

    logger.info(f"🚀 [Bot命令] 执行命令: /{command} 用户={message.sender_id} 聊天={message.chat_id}")
    await handler()
    return True


async def handle_callback_event(client, event, container) -> None:
    """回调处理器入口"""
    with correlation_context() as trace_id:
        callback: Optional[InboundCallback] = None
        try:
            callback = await event_adapter.adapt_callback(event)
            await handle_callback(client, callback, container)
        except Exception as e:
            logger.error(f"[{trace_id}] 处理回调时出错: {e}", exc_info=not isinstance(e, StorageError))
            if callback is not None and callback.is_private:
                text = STORAGE_ERROR_TEXT if isinstance(e, StorageError) else UNEXPECTED_ERROR_TEXT
                await safe_answer(container, callback, text, alert=True)


async def report_failure(client, message: Optional[InboundMessage], container, error: Exception, trace_id: str) -> None:
    """
    顶层异常兜底

    记录日志；仅在私聊中提示用户，群组内保持静默。
    """
    chat = message.chat_id if message else "-"
    logger.error(f"❌ [Bot命令] 处理失败: TraceID={trace_id}, 聊天={chat}, 错误={error}", exc_info=not isinstance(error, StorageError))

    if message is None or not message.is_private:
        return

    text = STORAGE_ERROR_TEXT if isinstance(error, StorageError) else UNEXPECTED_ERROR_TEXT
    try:
        await container.limiter.send_message(client, message.chat_id, text)
    except TransportError as send_e:
        logger.warning(f"⚠️ [Bot命令] 无法发送错误提示: {send_e}")
