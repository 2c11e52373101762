from pydantic import BaseModel, ConfigDict
from typing import Optional


class MembershipDTO(BaseModel):
    user_id: str
    chat_id: str
    last_seen: str
    chat_title: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def chat_display(self) -> str:
        return self.chat_title or self.chat_id
