import logging

from core.context import trace_id_var
from core.helpers.error_handler import handle_errors
from listeners.event_adapters import InboundMessage
from repositories.membership_repo import MembershipRepository

logger = logging.getLogger(__name__)


class MembershipTracker:
    """
    群组成员出现记录

    每条群消息 (非机器人发送) 都刷新一次 (user, chat) 记录，
    这些记录决定用户在私聊中可以搜索哪些群组。
    """

    def __init__(self, membership_repo: MembershipRepository):
        self.repo = membership_repo

    @handle_errors(default_return=False, error_message="成员记录更新失败")
    async def track(self, message: InboundMessage) -> bool:
        """返回是否写入了记录；存储异常只记录日志，不影响后续处理"""
        if not message.is_group or message.sender_is_bot or not message.sender_id:
            return False

        await self.repo.upsert_membership(
            message.sender_id,
            message.chat_id,
            chat_title=message.chat_title,
        )
        logger.debug(f"[{trace_id_var.get()}] 成员记录: user={message.sender_id} chat={message.chat_id}")
        return True
