"""
消息监听模块

订阅 Telegram 事件并通过事件适配器转换为业务事件。
"""

from .message_listener import setup_listeners

__all__ = ['setup_listeners']
