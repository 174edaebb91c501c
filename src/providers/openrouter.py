"""OpenRouter 供应商适配器（chat/completions）"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..utils.dicts import get_dict_value
from ..utils.errors import PluginErrorCode, PluginException
from ..utils.http import PostJsonSuccessResponse, post_json
from ..utils.log import logger
from .base import ProviderAdapter
from .prompts import SYSTEM_INSTRUCTIONS, USER_PROMPT, clean_model_output
from .schema import ConversionOutput, InferenceMetadata

OPENROUTER_DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_DEFAULT_MODEL = "openai/gpt-5"


@dataclass(slots=True)
class OpenRouterAdapter(ProviderAdapter):
    base_url: str
    api_key: str
    timeout_sec: int
    model: str = OPENROUTER_DEFAULT_MODEL
    image_detail: str = "auto"
    provider: str = "openrouter"

    def __post_init__(self) -> None:
        self.base_url = self.base_url.strip() or OPENROUTER_DEFAULT_BASE_URL
        self.model = self.model.strip() or OPENROUTER_DEFAULT_MODEL

    @property
    def display_name(self) -> str:
        return "OpenRouter"

    async def _request_chat_completions(
        self, payload: dict[str, Any]
    ) -> PostJsonSuccessResponse:
        """统一请求 OpenRouter chat/completions 并返回响应封装对象。"""
        self.ensure_configured()
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        return await post_json(
            url=url,
            payload=payload,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout_sec=self.timeout_sec,
            source="OpenRouter",
        )

    def _build_convert_payload(self, data_url: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTIONS},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": USER_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": data_url,
                                "detail": self.image_detail,
                            },
                        },
                    ],
                },
            ],
        }

    async def convert_image(self, data_url: str) -> ConversionOutput:
        self.ensure_configured()
        response = await self._request_chat_completions(
            self._build_convert_payload(data_url)
        )
        data = response["data"]
        elapsed_ms = response["elapsed_ms"]

        # OpenRouter 在 200 响应里也可能携带 error 对象。
        error = data.get("error")
        if isinstance(error, dict):
            raise PluginException(
                code=PluginErrorCode.UPSTREAM_ERROR,
                message=f"OpenRouter error: {error.get('message', 'unknown error')}",
                retryable=True,
                detail={
                    "provider": self.provider,
                    "error": error,
                    "elapsed_ms": elapsed_ms,
                },
            )

        text = _extract_message_text(data)
        if not text:
            logger.warning(
                "openrouter.empty_output",
                {"model": self.model, "response_keys": sorted(data.keys())},
            )

        return ConversionOutput(
            text=clean_model_output(text),
            metadata=InferenceMetadata(
                provider=self.provider,
                model=self.model,
                elapsed_ms=elapsed_ms,
            ),
        )


def _extract_message_text(data: dict[str, Any]) -> str:
    """提取首个 choice 的文本；content 可能是字符串或分段列表。"""
    content = get_dict_value(data, "choices", 0, "message", "content")
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for part in content:
        if get_dict_value(part, "type") == "text":
            text = get_dict_value(part, "text")
            if isinstance(text, str):
                parts.append(text)
    return "".join(parts)
