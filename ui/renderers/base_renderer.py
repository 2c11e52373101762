from typing import List
from telethon.tl.custom import Button

from ui.constants import UIStatus


class ViewResult:
    """统一渲染产物容器"""
    def __init__(self, text: str, buttons: List[List[Button]] = None):
        self.text = text
        self.buttons = buttons or None


def truncate_label(text: str, max_len: int = 48) -> str:
    """按钮文本截断，超长时保留 max_len-1 个字符并追加省略号"""
    text = text or ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + UIStatus.ELLIPSIS
