from __future__ import annotations

import filetype

from .normalize import normalize_extension, normalize_mime

# 允许转换的图片扩展名 -> MIME，不在表内的文件直接跳过。
IMAGE_EXTENSION_TO_MIME: dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}
SUPPORTED_IMAGE_EXTENSIONS = frozenset(IMAGE_EXTENSION_TO_MIME)


def _build_mime_to_extension() -> dict[str, str]:
    """反向映射；多个扩展名对应同一 MIME 时保留先出现的规范项。"""
    mime_to_extension: dict[str, str] = {}
    for extension, mime in IMAGE_EXTENSION_TO_MIME.items():
        mime_to_extension.setdefault(mime, extension)
    return mime_to_extension


_MIME_TO_EXTENSION = _build_mime_to_extension()


def resolve_image_mime(extension: str) -> str | None:
    """根据扩展名返回 MIME（忽略大小写），不支持的扩展名返回 None。"""
    return IMAGE_EXTENSION_TO_MIME.get(normalize_extension(extension))


def extension_for_mime(mime: str, default: str = "") -> str:
    """根据 MIME 返回受支持的扩展名，未知类型返回 default。"""
    return _MIME_TO_EXTENSION.get(normalize_mime(mime), default)


def sniff_image_extension(data: bytes, default: str = "") -> str:
    """按字节头嗅探图片扩展名；SVG 是文本格式，单独识别。"""
    guessed = filetype.guess(data)
    if guessed is not None:
        extension = extension_for_mime(guessed.mime)
        if extension:
            return extension
    head = data[:512].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "svg"
    return default
