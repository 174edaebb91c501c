from __future__ import annotations

from ..images.asset import ImageAsset
from ..providers.base import ProviderAdapter
from ..utils.log import StructuredLogEmitter
from ..utils.log import logger as default_logger


class ImageConverter:
    """单张图片的转换管线：解析 MIME -> 编码 data URL -> 调用远端模型。"""

    def __init__(
        self,
        adapter: ProviderAdapter,
        *,
        log: StructuredLogEmitter | None = None,
    ) -> None:
        self.adapter = adapter
        self.log = log or default_logger

    def ensure_configured(self) -> None:
        self.adapter.ensure_configured()

    async def convert(self, asset: ImageAsset) -> str:
        # 凭据检查先于编码与请求，缺失时零网络调用。
        self.ensure_configured()
        data_url = asset.to_data_url()
        self.log.debug(
            "convert.image_start",
            {"name": asset.name, "mime": asset.mime, "bytes": len(asset.data)},
        )
        output = await self.adapter.convert_image(data_url)
        self.log.info(
            "convert.image_done",
            {
                "name": asset.name,
                "provider": self.adapter.provider,
                "model": output.metadata.model if output.metadata else "",
                "elapsed_ms": output.metadata.elapsed_ms if output.metadata else None,
                "chars": len(output.text),
            },
        )
        return output.text
