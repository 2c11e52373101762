from sqlalchemy import Column, Integer, String, UniqueConstraint, Index
from models.base import Base


class MediaRecord(Base):
    """群组内已索引的视频消息 (只保存消息引用，不保存文件)"""
    __tablename__ = 'media_records'

    id = Column(Integer, primary_key=True)
    chat_id = Column(String, nullable=False)
    title = Column(String, nullable=False)  # 展示用标题，保留大小写
    title_key = Column(String, nullable=False)  # casefold 后的标题，用于唯一约束与查询
    message_id = Column(Integer, nullable=False)
    chat_title = Column(String, nullable=True)
    created_at = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint('chat_id', 'title_key', name='unique_chat_title'),
        Index('idx_media_chat_created', 'chat_id', 'created_at'),
    )

    def __repr__(self):
        return f"<MediaRecord(chat={self.chat_id}, title='{self.title}', msg={self.message_id})>"
