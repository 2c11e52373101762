import logging

from core.helpers.callback_data import SCOPE_CHAT, SCOPE_USER
from listeners.event_adapters import InboundMessage

logger = logging.getLogger(__name__)


async def send_menu_page(client, container, destination, scope: str, scope_id, offset: int, private: bool):
    """查询一页课程并作为新消息发送到 destination"""
    page = await container.paginator.get_page(scope, scope_id, offset)
    view = container.menu_renderer.render_page(page, private)
    await container.limiter.send_message(client, destination, view.text, buttons=view.buttons)
    return page


async def handle_menu_command(client, message: InboundMessage, container):
    """/darslar 或 "📚 Darslar" 按钮"""
    if message.is_group:
        scope, scope_id = SCOPE_CHAT, message.chat_id
    else:
        scope, scope_id = SCOPE_USER, message.sender_id
    return await send_menu_page(client, container, message.chat_id, scope, scope_id, 0, private=not message.is_group)
