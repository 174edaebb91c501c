from __future__ import annotations

import base64
import binascii
from typing import NamedTuple
from urllib.parse import unquote_to_bytes

from .normalize import compact_whitespace, normalize_mime


def encode_base64_payload(data: bytes) -> str:
    """bytes => base64，任意字节序列都可以无损往返。"""
    return base64.b64encode(data).decode("ascii")


def decode_base64_payload(value: str) -> bytes:
    """规范化并校验 base64 负载，返回原始字节。"""
    normalized = compact_whitespace(value.strip().removeprefix("base64://"))
    if not normalized:
        raise ValueError("base64 payload is empty.")
    try:
        return base64.b64decode(normalized, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise ValueError("base64 payload is invalid.") from exc


def encode_data_url(data: bytes, mime: str) -> str:
    """将原始字节编码为 `data:<mime>;base64,<payload>`，不限制大小。"""
    normalized_mime = normalize_mime(mime)
    if not normalized_mime:
        raise ValueError("mime is required to build data URL.")
    return f"data:{normalized_mime};base64,{encode_base64_payload(data)}"


class DataUrlHeader(NamedTuple):
    mime: str
    is_base64: bool
    payload: str


def parse_data_url_header(data_url: str) -> DataUrlHeader:
    """解析 data URL：`data:[mime][;param...][;base64],<payload>`。"""
    normalized = data_url.strip()
    if not normalized.startswith("data:"):
        raise ValueError("data_url must start with 'data:'.")
    if "," not in normalized:
        raise ValueError("data_url must contain ',' separator.")

    meta, payload = normalized.removeprefix("data:").split(",", 1)
    tokens = [segment.strip() for segment in meta.split(";") if segment.strip()]
    is_base64 = any(token.lower() == "base64" for token in tokens)

    mime = ""
    if tokens and "/" in tokens[0] and "=" not in tokens[0]:
        mime = normalize_mime(tokens[0])
    return DataUrlHeader(mime=mime, is_base64=is_base64, payload=payload)


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """解码 data URL，返回 `(bytes, mime)`；非 base64 负载按百分号编码处理。"""
    header = parse_data_url_header(data_url)
    if header.is_base64:
        return decode_base64_payload(header.payload), header.mime
    return unquote_to_bytes(header.payload), header.mime
