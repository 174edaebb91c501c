from __future__ import annotations


def normalize_mime(value: str) -> str:
    """规范化 MIME：去掉参数部分、首尾空白并转小写。"""
    return value.split(";", 1)[0].strip().lower()


def normalize_extension(value: str) -> str:
    """规范化扩展名：去空白、去掉前导点并转小写，如 `.PNG` -> `png`。"""
    return value.strip().lower().removeprefix(".")


def compact_whitespace(value: str) -> str:
    """移除字符串中的所有空白字符。"""
    return "".join(value.split())
