from __future__ import annotations

from abc import ABC, abstractmethod

from ..utils.errors import configuration_error
from .schema import ConversionOutput


class ProviderAdapter(ABC):
    provider: str
    base_url: str
    api_key: str
    model: str

    @property
    def configured(self) -> bool:
        return bool(self.api_key.strip())

    def ensure_configured(self) -> None:
        """凭据缺失时立即抛出配置错误，不发起任何请求。"""
        if not self.configured:
            raise configuration_error(
                f"{self.display_name} API key is not set. "
                "Please configure it in the plugin settings.",
                provider=self.provider,
                base_url=self.base_url,
            )

    @property
    def display_name(self) -> str:
        return self.provider

    @abstractmethod
    async def convert_image(self, data_url: str) -> ConversionOutput:
        """将单张 data URL 图片转换为 Markdown。"""
