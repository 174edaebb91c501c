"""OpenAI 供应商适配器（Responses API）"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..utils.dicts import get_dict_value
from ..utils.http import PostJsonSuccessResponse, post_json
from ..utils.log import logger
from .base import ProviderAdapter
from .prompts import SYSTEM_INSTRUCTIONS, USER_PROMPT, clean_model_output
from .schema import ConversionOutput, InferenceMetadata

OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
OPENAI_DEFAULT_MODEL = "gpt-5"


@dataclass(slots=True)
class OpenAIAdapter(ProviderAdapter):
    base_url: str
    api_key: str
    timeout_sec: int
    model: str = OPENAI_DEFAULT_MODEL
    image_detail: str = "auto"
    provider: str = "openai"

    def __post_init__(self) -> None:
        self.base_url = self.base_url.strip() or OPENAI_DEFAULT_BASE_URL
        self.model = self.model.strip() or OPENAI_DEFAULT_MODEL

    @property
    def display_name(self) -> str:
        return "OpenAI"

    async def _request_responses(
        self, payload: dict[str, Any]
    ) -> PostJsonSuccessResponse:
        """统一请求 OpenAI responses 接口并返回响应封装对象。"""
        self.ensure_configured()
        url = f"{self.base_url.rstrip('/')}/responses"
        return await post_json(
            url=url,
            payload=payload,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout_sec=self.timeout_sec,
            source="OpenAI",
        )

    def _build_convert_payload(self, data_url: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "instructions": SYSTEM_INSTRUCTIONS,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": USER_PROMPT},
                        {
                            "type": "input_image",
                            "image_url": data_url,
                            "detail": self.image_detail,
                        },
                    ],
                }
            ],
        }

    async def convert_image(self, data_url: str) -> ConversionOutput:
        self.ensure_configured()
        response = await self._request_responses(self._build_convert_payload(data_url))
        data = response["data"]
        elapsed_ms = response["elapsed_ms"]

        text = _extract_output_text(data)
        if not text:
            logger.warning(
                "openai.empty_output",
                {
                    "model": self.model,
                    "status": data.get("status"),
                    "response_keys": sorted(data.keys()),
                },
            )

        return ConversionOutput(
            text=clean_model_output(text),
            metadata=InferenceMetadata(
                provider=self.provider,
                model=self.model,
                elapsed_ms=elapsed_ms,
            ),
        )


def _extract_output_text(data: dict[str, Any]) -> str:
    """提取 Responses API 的文本输出。

    SDK 会提供聚合好的 `output_text`；原始 HTTP 响应则需要拼接
    `output[].content[]` 中所有 `output_text` 片段。
    """
    aggregated = data.get("output_text")
    if isinstance(aggregated, str) and aggregated:
        return aggregated

    parts: list[str] = []
    output = data.get("output")
    if not isinstance(output, list):
        return ""
    for item in output:
        content = get_dict_value(item, "content")
        if not isinstance(content, list):
            continue
        for part in content:
            if get_dict_value(part, "type") != "output_text":
                continue
            text = get_dict_value(part, "text")
            if isinstance(text, str):
                parts.append(text)
    return "".join(parts)
