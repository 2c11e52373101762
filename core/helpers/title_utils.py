"""
标题处理工具函数

- normalize_title: 去除首尾空白并把内部连续空白折叠为单个空格
- title_key: 大小写无关的比较键
- strip_extension: 去掉文件名最后一段扩展名 ("a.b.mp4" -> "a.b")
- strip_quotes: 去掉查询两端的一对双引号
"""

from __future__ import annotations

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")
_LAST_EXTENSION = re.compile(r"\.[^.]+$")


def normalize_title(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", str(text).strip())


def title_key(text: Optional[str]) -> str:
    """标题的比较键：先规范化再 casefold，保证 "Lesson One" == "lesson  one" """
    return normalize_title(text).casefold()


def strip_extension(file_name: Optional[str]) -> str:
    if not file_name:
        return ""
    return _LAST_EXTENSION.sub("", str(file_name))


def strip_quotes(query: Optional[str]) -> str:
    """'"aniq nom"' -> 'aniq nom'；单个引号或未闭合的引号保持原样"""
    text = (query or "").strip()
    if len(text) > 1 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text
