from __future__ import annotations

from uuid6 import uuid7


def new_run_id() -> str:
    """生成按时间有序的批次 ID，用于串联同一次转换的日志。"""
    return str(uuid7())
