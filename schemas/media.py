from pydantic import BaseModel, ConfigDict
from typing import Optional


class MediaRecordDTO(BaseModel):
    id: Optional[int] = None
    chat_id: str
    title: str
    message_id: int
    chat_title: Optional[str] = None
    created_at: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def chat_display(self) -> str:
        """群组展示名，缺失时退回 chat_id"""
        return self.chat_title or self.chat_id
