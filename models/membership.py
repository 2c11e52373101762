from sqlalchemy import Column, Integer, String, UniqueConstraint, Index
from models.base import Base


class MembershipRecord(Base):
    """用户在某个群组中出现过的记录，决定私聊搜索范围"""
    __tablename__ = 'chat_memberships'

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False)
    chat_id = Column(String, nullable=False)
    last_seen = Column(String, nullable=False)
    chat_title = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'chat_id', name='unique_user_chat'),
        Index('idx_membership_user_last', 'user_id', 'last_seen'),
    )

    def __repr__(self):
        return f"<MembershipRecord(user={self.user_id}, chat={self.chat_id})>"
