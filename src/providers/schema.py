from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ProviderAdapterConfig:
    provider: str
    """供应商标识：openai / openrouter"""
    base_url: str
    """供应商 API 基础地址，留空使用默认地址"""
    api_key: str
    """供应商 API 密钥"""
    timeout_sec: int
    """HTTP 请求超时时间（秒）"""
    model: str
    """多模态模型名称"""
    image_detail: str = "auto"
    """图片输入精度：auto / low / high"""


@dataclass(slots=True)
class InferenceMetadata:
    provider: str
    """供应商标识。"""
    model: str
    """实际请求使用的模型名。"""
    elapsed_ms: int | None = None
    """从发起请求到收到响应的耗时（毫秒）。"""


@dataclass(slots=True)
class ConversionOutput:
    text: str
    """清理后的 Markdown 文本。"""
    metadata: InferenceMetadata | None = None
