import logging

from core.context import trace_id_var
from core.exceptions import TransportError
from listeners.event_adapters import InboundMessage
from services.resolver_service import DispositionKind, PHASE_EXACT
from ui.constants import (
    FORWARD_FAILED_GROUP_FUZZY_TEXT,
    FORWARD_FAILED_GROUP_TEXT,
    FORWARD_FAILED_PRIVATE_TEXT,
    SEARCH_GROUP_NOT_FOUND_TEXT,
    SEARCH_NO_SCOPE_TEXT,
    SEARCH_PRIVATE_NOT_FOUND_TEXT,
    SEARCH_USAGE_TEXT,
)

logger = logging.getLogger(__name__)


async def handle_find_command(client, message: InboundMessage, query: str, container):
    """
    /find <nom> 查询并转发

    群组: 在本群查找，命中后转发到本群
    私聊: 在用户出现过的全部群组查找，命中后转发给用户
    """
    limiter = container.limiter
    chat_id = message.chat_id
    private = not message.is_group

    disposition = await container.resolver.resolve(query, message.sender_id, chat_id, message.is_group)
    kind = disposition.kind
    logger.info(f"[{trace_id_var.get()}] 🔍 /find user={message.sender_id} chat={chat_id} query='{disposition.query}' -> {kind.value}")

    if kind is DispositionKind.USAGE:
        await limiter.send_message(client, chat_id, SEARCH_USAGE_TEXT)
        return disposition

    if kind is DispositionKind.NO_SCOPE:
        await limiter.send_message(client, chat_id, SEARCH_NO_SCOPE_TEXT)
        return disposition

    if kind is DispositionKind.RESOLVED:
        target = disposition.target
        try:
            await limiter.forward(client, chat_id, target.chat_id, target.message_id)
        except TransportError as e:
            logger.warning(f"[{trace_id_var.get()}] 转发失败 {target.chat_id}/{target.message_id}: {e}")
            if private:
                text = FORWARD_FAILED_PRIVATE_TEXT
            elif disposition.phase == PHASE_EXACT:
                text = FORWARD_FAILED_GROUP_TEXT
            else:
                text = FORWARD_FAILED_GROUP_FUZZY_TEXT
            await limiter.send_message(client, chat_id, text)
        return disposition

    if kind is DispositionKind.AMBIGUOUS:
        text = container.search_renderer.render_ambiguous(disposition, private)
        await limiter.send_message(client, chat_id, text)
        return disposition

    # NOT_FOUND
    if private:
        await limiter.send_message(client, chat_id, SEARCH_PRIVATE_NOT_FOUND_TEXT)
    elif not container.settings.SEARCH_SILENT_GROUP_MISS:
        await limiter.send_message(client, chat_id, SEARCH_GROUP_NOT_FOUND_TEXT)
    return disposition
