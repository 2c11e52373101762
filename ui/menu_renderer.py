"""
课程菜单渲染器 - UI层
只负责把 MenuPage 转换为文本和内联按钮，不包含查询逻辑
"""
from telethon.tl.custom import Button
import logging

from core.helpers.callback_data import encode_forward, encode_page
from services.menu_service import MenuPage
from ui.constants import (
    MENU_BUTTON_TEXT,
    MENU_EMPTY_GROUP_TEXT,
    MENU_EMPTY_PRIVATE_TEXT,
    MENU_HEADER_TEXT,
    NAV_NEXT_TEXT,
    NAV_PREV_TEXT,
)
from ui.renderers.base_renderer import ViewResult, truncate_label

logger = logging.getLogger(__name__)


class MenuRenderer:
    """课程菜单渲染器 - 纯UI渲染"""

    def __init__(self, label_max: int = 48, menu_button_text: str = MENU_BUTTON_TEXT):
        self.label_max = label_max
        self.menu_button_text = menu_button_text

    def row_label(self, row, private: bool) -> str:
        label = f"[{row.chat_display}] {row.title}" if private else row.title
        return truncate_label(label, self.label_max)

    def render_page(self, page: MenuPage, private: bool) -> ViewResult:
        if page.is_empty:
            return ViewResult(MENU_EMPTY_PRIVATE_TEXT if private else MENU_EMPTY_GROUP_TEXT)

        buttons = [
            [Button.inline(self.row_label(row, private), encode_forward(row.chat_id, row.message_id).encode())]
            for row in page.rows
        ]

        nav = []
        if page.has_prev:
            nav.append(Button.inline(NAV_PREV_TEXT, encode_page(page.scope, page.scope_id, page.prev_offset).encode()))
        if page.has_next:
            nav.append(Button.inline(NAV_NEXT_TEXT, encode_page(page.scope, page.scope_id, page.next_offset).encode()))
        if nav:
            buttons.append(nav)

        text = MENU_HEADER_TEXT.format(first=page.first_index, last=page.last_index, total=page.total)
        return ViewResult(text, buttons)

    def reply_keyboard(self):
        """帮助消息附带的常驻键盘按钮"""
        return [[Button.text(self.menu_button_text, resize=True)]]
