from listeners.event_adapters import InboundMessage
from ui.constants import HELP_TEXT


async def handle_help_command(client, message: InboundMessage, container):
    """/help 与 /start: 使用说明 + 常驻菜单按钮"""
    await container.limiter.send_message(
        client,
        message.chat_id,
        HELP_TEXT,
        buttons=container.menu_renderer.reply_keyboard(),
    )
