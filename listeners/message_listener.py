"""
机器人消息监听器

只负责订阅 Telethon 事件并交给 handlers.bot_handler，不做业务判断。
"""

from __future__ import annotations
import logging
from typing import Any

from telethon import events

logger = logging.getLogger(__name__)


async def setup_listeners(bot_client: Any, container: Any) -> None:
    """
    注册新消息、编辑消息与按钮回调三类监听器

    Args:
        bot_client: 机器人客户端
        container: 依赖容器 (仓库、服务、限流器)
    """
    from handlers import bot_handler

    logger.info("开始设置消息监听器")

    bot_id = None
    try:
        me = await bot_client.get_me()
        bot_id = me.id
        container.bot_username = getattr(me, "username", None)
        logger.info(f"机器人监听器设置完成，ID: {bot_id}, 用户名: @{container.bot_username}")
    except Exception as e:
        logger.error(f"获取机器人信息时出错: {e}")

    def should_process(event) -> bool:
        # 不处理机器人自己发送的消息
        if event.out:
            return False
        return not (bot_id and event.sender_id == bot_id)

    @bot_client.on(events.NewMessage(func=should_process))
    async def bot_message_listener(event):
        await bot_handler.handle_message(bot_client, event, container)

    @bot_client.on(events.MessageEdited(func=should_process))
    async def bot_edit_listener(event):
        await bot_handler.handle_message(bot_client, event, container, is_edit=True)

    @bot_client.on(events.CallbackQuery)
    async def bot_callback_listener(event):
        await bot_handler.handle_callback_event(bot_client, event, container)

    logger.info("消息监听器设置完成: NewMessage / MessageEdited / CallbackQuery")
