"""
按钮回调数据编解码

格式 (ASCII，以 | 分隔，可精确往返):
- L|<chat_id>|<message_id>           转发指定消息
- P|chat|<chat_id>|<offset>          群组内翻页
- P|user|<user_id>|<offset>          用户跨群组翻页

解析失败一律返回 None，由调用方静默忽略。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

SCOPE_CHAT = "chat"
SCOPE_USER = "user"

_ID = r"-?[1-9]\d*"
_NUM = r"0|[1-9]\d*"
_FORWARD_RE = re.compile(rf"L\|({_ID})\|({_NUM})")
_PAGE_RE = re.compile(rf"P\|({SCOPE_CHAT}|{SCOPE_USER})\|({_ID})\|({_NUM})")


@dataclass(frozen=True)
class ForwardAction:
    chat_id: str
    message_id: int

    def encode(self) -> str:
        return f"L|{self.chat_id}|{self.message_id}"


@dataclass(frozen=True)
class PageAction:
    scope: str
    scope_id: str
    offset: int

    def encode(self) -> str:
        return f"P|{self.scope}|{self.scope_id}|{self.offset}"


CallbackAction = Union[ForwardAction, PageAction]


def encode_forward(chat_id, message_id: int) -> str:
    return ForwardAction(str(chat_id), int(message_id)).encode()


def encode_page(scope: str, scope_id, offset: int) -> str:
    if scope not in (SCOPE_CHAT, SCOPE_USER):
        raise ValueError(f"unknown page scope: {scope}")
    return PageAction(scope, str(scope_id), max(0, int(offset))).encode()


def parse_callback(data: Union[bytes, str, None]) -> Optional[CallbackAction]:
    if not data:
        return None
    if isinstance(data, bytes):
        try:
            data = data.decode("ascii")
        except UnicodeDecodeError:
            return None

    m = _FORWARD_RE.fullmatch(data)
    if m:
        return ForwardAction(m.group(1), int(m.group(2)))

    m = _PAGE_RE.fullmatch(data)
    if m:
        return PageAction(m.group(1), m.group(2), int(m.group(3)))

    return None
