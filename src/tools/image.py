from __future__ import annotations

from astrbot.api.event import AstrMessageEvent
from astrbot.api.message_components import Image

from ..images.asset import ImageAsset, load_image_asset
from ..utils.errors import PluginException
from ..utils.log import logger


def _component_raw(component: Image) -> str:
    """优先使用 file 字段（data URL / base64 / http），其次 url。"""
    for raw in (component.file or "", component.url or ""):
        normalized = raw.strip()
        if normalized.startswith(("http://", "https://", "data:", "base64://")):
            return normalized
    return ""


async def extract_image_assets_from_event(
    event: AstrMessageEvent,
    *,
    timeout_sec: int = 60,
) -> tuple[list[ImageAsset], list[str]]:
    """
    从消息事件按顺序提取图片，相当于文件选择器的多选结果。

    返回 `(assets, errors)`；单张读取失败只记录错误，不影响其他图片。
    """
    assets: list[ImageAsset] = []
    errors: list[str] = []
    images = [c for c in event.get_messages() if isinstance(c, Image)]
    for index, component in enumerate(images, start=1):
        fallback_stem = f"image_{index}"
        try:
            raw = _component_raw(component)
            if not raw:
                raw = await component.convert_to_base64()
            asset = await load_image_asset(
                raw,
                fallback_stem=fallback_stem,
                timeout_sec=timeout_sec,
            )
        except PluginException as exc:
            logger.warning(
                "image.ingest_failed",
                {"index": index, "error": exc.to_dict()},
            )
            errors.append(exc.message)
            continue
        except Exception:
            logger.exception("Failed to convert input image to base64.")
            errors.append(f"Failed to read image #{index}.")
            continue
        assets.append(asset)
    return assets, errors
