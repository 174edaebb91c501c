from __future__ import annotations

import re

_ILLEGAL_FILENAME_CHARS_RE = re.compile(r'[<>:"/\\|?*]')


def strip_illegal_filename_chars(value: str) -> str:
    """移除文件名非法字符 `<>:"/\\|?*`。"""
    return _ILLEGAL_FILENAME_CHARS_RE.sub("", value)


def ensure_markdown_name(name: str) -> str:
    """补全 `.md` 后缀。"""
    return name if name.endswith(".md") else f"{name}.md"


def join_note_path(folder: str, name: str) -> str:
    """拼接输出目录与笔记名；目录为空时落在 vault 根目录。"""
    normalized_folder = folder.strip().strip("/")
    if not normalized_folder:
        return name
    return f"{normalized_folder}/{name}"


def derive_bulk_note_name(markdown: str, index: int) -> str:
    """
    取转换结果首行作为笔记名（已去除非法字符）。

    首行为空、或去除非法字符后为空时回退为 `Image_<index>`，index 从 1 开始。
    """
    first_line = markdown.strip().split("\n", 1)[0].strip()
    name = strip_illegal_filename_chars(first_line).strip()
    return name or f"Image_{index}"
