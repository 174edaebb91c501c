from __future__ import annotations

from typing import Any


def get_dict_value(data: Any, *keys: str | int) -> Any:
    """安全读取嵌套字段，字符串按字典键、整数按列表下标；路径不存在时返回 None。"""
    current = data
    for key in keys:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        if current is None:
            return None
    return current
