from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from ..utils.errors import PluginErrorCode, PluginException
from ..utils.http import get_bytes
from .codec import decode_base64_payload, decode_data_url, encode_data_url
from .mime import extension_for_mime, resolve_image_mime, sniff_image_extension


@dataclass(slots=True)
class ImageAsset:
    """一次性的图片输入：文件名 + 原始字节，读入、转换后即丢弃。"""

    name: str
    """展示用文件名（带扩展名），同时决定 MIME。"""
    data: bytes

    @property
    def extension(self) -> str:
        return PurePosixPath(self.name).suffix.lower().removeprefix(".")

    @property
    def mime(self) -> str | None:
        """按扩展名解析的 MIME；不在允许列表内时为 None。"""
        return resolve_image_mime(self.extension)

    @property
    def supported(self) -> bool:
        return self.mime is not None

    def to_data_url(self) -> str:
        mime = self.mime
        if mime is None:
            raise PluginException(
                code=PluginErrorCode.UNSUPPORTED_ASSET,
                message=f"Unsupported image type: {self.name}",
                retryable=False,
                detail={"name": self.name, "extension": self.extension},
            )
        return encode_data_url(self.data, mime)


def _name_from_url(url: str) -> str:
    return unquote(PurePosixPath(urlparse(url).path).name)


def _ensure_image_name(name: str, data: bytes, declared_mime: str, stem: str) -> str:
    """名称缺少受支持扩展名时，依次用声明的 MIME、字节嗅探补全。"""
    if name and resolve_image_mime(PurePosixPath(name).suffix):
        return name
    extension = extension_for_mime(declared_mime) or sniff_image_extension(data)
    base = PurePosixPath(name).stem if name else stem
    if not extension:
        # 无法识别的内容保持原名，交给转换阶段按不支持处理。
        return name or stem
    return f"{base or stem}.{extension}"


async def load_image_asset(
    raw: str,
    *,
    fallback_stem: str,
    name: str = "",
    timeout_sec: int = 60,
) -> ImageAsset:
    """
    从原始字符串加载图片。

    支持输入：
    - http(s) URL：下载内容，文件名取 URL 路径末段
    - data URL：解码负载，MIME 取自头部
    - 其他按 base64 处理（可带 `base64://` 前缀）

    读取失败统一抛出 `INGESTION_ERROR`。
    """
    normalized = raw.strip()
    declared_mime = ""
    try:
        if normalized.startswith(("http://", "https://")):
            response = await get_bytes(url=normalized, timeout_sec=timeout_sec)
            data = response["data"]
            declared_mime = response["mime"]
            name = name or _name_from_url(normalized)
        elif normalized.startswith("data:"):
            data, declared_mime = decode_data_url(normalized)
        else:
            data = decode_base64_payload(normalized)
    except PluginException as exc:
        raise PluginException(
            code=PluginErrorCode.INGESTION_ERROR,
            message=f"Failed to read image {name or fallback_stem}: {exc.message}",
            retryable=exc.retryable,
            detail={"cause": exc.to_dict()},
        ) from exc
    except ValueError as exc:
        raise PluginException(
            code=PluginErrorCode.INGESTION_ERROR,
            message=f"Failed to read image {name or fallback_stem}: {exc}",
            retryable=False,
        ) from exc

    return ImageAsset(
        name=_ensure_image_name(name, data, declared_mime, fallback_stem),
        data=data,
    )
