from __future__ import annotations

from collections.abc import Sequence

from ..conversion.modes import MODE_BULK, MODE_MULTI, MODE_SINGLE

DEFAULT_NOTE_NAME = "Untitled"

_MODE_ALIASES: dict[str, str] = {
    "single": MODE_SINGLE,
    "single-image": MODE_SINGLE,
    "multi": MODE_MULTI,
    "multi-image": MODE_MULTI,
    "bulk": MODE_BULK,
}


def strip_command_prefix(message_str: str, command_tokens: Sequence[str]) -> str:
    """去掉消息开头的命令词（忽略大小写与前导 `/`），返回剩余参数文本。"""
    tokens = message_str.strip().split()
    expected = [token.lower() for token in command_tokens if token.strip()]
    if tokens and tokens[0].startswith("/"):
        tokens[0] = tokens[0][1:]
    head = [token.lower() for token in tokens[: len(expected)]]
    if expected and head == expected:
        tokens = tokens[len(expected) :]
    return " ".join(tokens)


def parse_convert_args(args_text: str) -> tuple[str, str]:
    """
    解析 `convert` 参数：`<mode> [note name...]`。

    - mode 缺省为 single，未知 mode 抛出 ValueError
    - 笔记名可包含空格，缺省为 `Untitled`；bulk 模式忽略笔记名
    """
    tokens = args_text.split()
    if not tokens:
        return MODE_SINGLE, DEFAULT_NOTE_NAME

    mode = _MODE_ALIASES.get(tokens[0].lower())
    if mode is None:
        supported = ", ".join(sorted(set(_MODE_ALIASES.values())))
        raise ValueError(f"Unknown mode '{tokens[0]}'. Choose one of: {supported}.")

    if mode == MODE_BULK:
        return mode, ""
    name = " ".join(tokens[1:]).strip()
    return mode, name or DEFAULT_NOTE_NAME
