"""
内联按钮回调处理

- L|chat|msg : 转发课程消息 (私聊需是该群成员，群内只能转发本群消息)
- P|scope|id|offset : 翻页，发送新的菜单消息

重复的回调 ID 只做轻量应答，不重复转发。
"""
import logging
from typing import Optional

from core.context import trace_id_var
from core.exceptions import TransportError
from core.helpers.callback_data import (
    SCOPE_CHAT,
    SCOPE_USER,
    ForwardAction,
    PageAction,
    parse_callback,
)
from handlers.commands.menu_commands import send_menu_page
from listeners.event_adapters import InboundCallback
from ui.constants import (
    ACCESS_DENIED_TEXT,
    FORWARD_FAILED_ALERT_TEXT,
    FORWARD_SENT_TEXT,
    UIStatus,
)

logger = logging.getLogger(__name__)


async def safe_answer(container, callback: InboundCallback, message: Optional[str] = None, **kwargs) -> bool:
    """回答回调；失败 (例如回调已过期) 只记录日志"""
    try:
        await container.limiter.answer(callback.original_event, callback.chat_id, message, **kwargs)
        return True
    except TransportError as e:
        logger.warning(f"[{trace_id_var.get()}] 回调应答失败 query={callback.query_id}: {e}")
        return False


async def handle_callback(client, callback: InboundCallback, container) -> None:
    if not container.limiter.activations.check_and_mark(callback.query_id):
        logger.debug(f"[{trace_id_var.get()}] 重复回调 query={callback.query_id}")
        await safe_answer(container, callback, UIStatus.WAIT, cache_time=2)
        return

    action = parse_callback(callback.data)
    if action is None:
        logger.debug(f"[{trace_id_var.get()}] 无法识别的回调数据: {callback.data!r}")
        await safe_answer(container, callback)
        return

    if isinstance(action, ForwardAction):
        await _handle_forward(client, callback, action, container)
    elif isinstance(action, PageAction):
        await _handle_page(client, callback, action, container)


async def _handle_forward(client, callback: InboundCallback, action: ForwardAction, container) -> None:
    if callback.is_private:
        allowed = await container.membership_repo.is_member(callback.sender_id, action.chat_id)
    else:
        allowed = action.chat_id == callback.chat_id
    if not allowed:
        logger.warning(f"[{trace_id_var.get()}] 拒绝转发: user={callback.sender_id} source={action.chat_id}")
        await safe_answer(container, callback, ACCESS_DENIED_TEXT, alert=True)
        return

    try:
        await container.limiter.forward(client, callback.chat_id, action.chat_id, action.message_id)
    except TransportError as e:
        logger.warning(f"[{trace_id_var.get()}] 按钮转发失败 {action.chat_id}/{action.message_id}: {e}")
        await safe_answer(container, callback, FORWARD_FAILED_ALERT_TEXT, alert=True)
        return

    await safe_answer(container, callback, FORWARD_SENT_TEXT)
    # 移除键盘，减少重复点击
    try:
        await container.limiter.clear_buttons(client, callback.chat_id, callback.message_id)
    except TransportError as e:
        logger.debug(f"[{trace_id_var.get()}] 移除键盘失败: {e}")


async def _handle_page(client, callback: InboundCallback, action: PageAction, container) -> None:
    if action.scope == SCOPE_USER:
        allowed = action.scope_id == callback.sender_id
    elif callback.is_private:
        allowed = await container.membership_repo.is_member(callback.sender_id, action.scope_id)
    else:
        allowed = action.scope == SCOPE_CHAT and action.scope_id == callback.chat_id
    if not allowed:
        await safe_answer(container, callback, ACCESS_DENIED_TEXT, alert=True)
        return

    await safe_answer(container, callback, UIStatus.NEXT_PAGE)
    await send_menu_page(
        client,
        container,
        callback.chat_id,
        action.scope,
        action.scope_id,
        action.offset,
        private=callback.is_private,
    )
