from __future__ import annotations

from typing import Any

import pytest
from src.providers.openai_responses import (
    OPENAI_DEFAULT_BASE_URL,
    OPENAI_DEFAULT_MODEL,
    OpenAIAdapter,
)
from src.providers.prompts import (
    NO_CONTENT_FALLBACK,
    SYSTEM_INSTRUCTIONS,
    USER_PROMPT,
    clean_model_output,
)
from src.utils.errors import PluginErrorCode, PluginException

DATA_URL = "data:image/png;base64,ZmFrZS1pbWFnZQ=="


def _make_adapter(api_key: str = "test-key") -> OpenAIAdapter:
    return OpenAIAdapter(
        base_url="https://api.openai.com/v1",
        api_key=api_key,
        timeout_sec=30,
        model="test-model",
    )


def _responses_body(*texts: str) -> dict[str, Any]:
    return {
        "status": "completed",
        "output": [
            {"type": "reasoning", "summary": []},
            {
                "type": "message",
                "role": "assistant",
                "content": [{"type": "output_text", "text": text} for text in texts],
            },
        ],
    }


def test_clean_model_output_strips_fences_and_whitespace() -> None:
    """验证：所有 ``` 标记都会被移除，并去掉首尾空白。"""
    raw = "```markdown\n# Title\n\n```python\nprint(1)\n```\n  "

    assert clean_model_output(raw) == "markdown\n# Title\n\npython\nprint(1)"


@pytest.mark.parametrize("raw", [None, ""])
def test_clean_model_output_falls_back_when_empty(raw: str | None) -> None:
    assert clean_model_output(raw) == NO_CONTENT_FALLBACK


def test_openai_adapter_defaults_when_blank() -> None:
    adapter = OpenAIAdapter(base_url=" ", api_key="k", timeout_sec=30, model="")

    assert adapter.base_url == OPENAI_DEFAULT_BASE_URL
    assert adapter.model == OPENAI_DEFAULT_MODEL


def test_openai_convert_payload_shape() -> None:
    """验证：请求体携带固定指令、固定提示词与 detail=auto 的图片。"""
    payload = _make_adapter()._build_convert_payload(DATA_URL)

    assert payload["model"] == "test-model"
    assert payload["instructions"] == SYSTEM_INSTRUCTIONS
    assert payload["input"] == [
        {
            "role": "user",
            "content": [
                {"type": "input_text", "text": USER_PROMPT},
                {"type": "input_image", "image_url": DATA_URL, "detail": "auto"},
            ],
        }
    ]


@pytest.mark.asyncio
async def test_openai_convert_image_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """验证：拼接 output_text 片段并清理代码围栏。"""
    adapter = _make_adapter()
    captured: dict[str, Any] = {}

    async def fake_post_json(*, url: str, payload: dict[str, Any], headers: dict[str, str], **_: Any) -> dict[str, Any]:
        captured["url"] = url
        captured["payload"] = payload
        captured["headers"] = headers
        return {"data": _responses_body("```\n# Notes\n", "- item\n```"), "elapsed_ms": 42}

    monkeypatch.setattr("src.providers.openai_responses.post_json", fake_post_json)

    output = await adapter.convert_image(DATA_URL)

    assert captured["url"] == "https://api.openai.com/v1/responses"
    assert captured["headers"]["Authorization"] == "Bearer test-key"
    assert output.text == "# Notes\n- item"
    assert output.metadata.provider == "openai"
    assert output.metadata.model == "test-model"
    assert output.metadata.elapsed_ms == 42


@pytest.mark.asyncio
async def test_openai_convert_image_prefers_aggregated_output_text(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    adapter = _make_adapter()

    async def fake_post_json(**_: Any) -> dict[str, Any]:
        body = _responses_body("ignored")
        body["output_text"] = "  aggregated  "
        return {"data": body, "elapsed_ms": 1}

    monkeypatch.setattr("src.providers.openai_responses.post_json", fake_post_json)

    output = await adapter.convert_image(DATA_URL)

    assert output.text == "aggregated"


@pytest.mark.asyncio
async def test_openai_convert_image_without_text_uses_fallback(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    adapter = _make_adapter()

    async def fake_post_json(**_: Any) -> dict[str, Any]:
        return {"data": {"status": "incomplete", "output": []}, "elapsed_ms": 1}

    monkeypatch.setattr("src.providers.openai_responses.post_json", fake_post_json)

    output = await adapter.convert_image(DATA_URL)

    assert output.text == NO_CONTENT_FALLBACK


@pytest.mark.asyncio
async def test_openai_missing_api_key_fails_before_request(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """验证：未配置密钥时抛出 CONFIGURATION_ERROR，且不发起任何请求。"""
    adapter = _make_adapter(api_key="  ")
    calls: list[dict[str, Any]] = []

    async def fake_post_json(**kwargs: Any) -> dict[str, Any]:
        calls.append(kwargs)
        return {"data": {}, "elapsed_ms": 0}

    monkeypatch.setattr("src.providers.openai_responses.post_json", fake_post_json)

    with pytest.raises(PluginException) as exc_info:
        await adapter.convert_image(DATA_URL)

    assert exc_info.value.code == PluginErrorCode.CONFIGURATION_ERROR
    assert "API key is not set" in exc_info.value.message
    assert calls == []


@pytest.mark.asyncio
async def test_openai_upstream_error_propagates_unchanged(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """验证：远端错误原样向上抛出，不做重试。"""
    adapter = _make_adapter()
    upstream_error = PluginException(
        code=PluginErrorCode.UPSTREAM_ERROR,
        message="OpenAI HTTP 401",
        retryable=False,
    )
    calls = 0

    async def fake_post_json(**_: Any) -> dict[str, Any]:
        nonlocal calls
        calls += 1
        raise upstream_error

    monkeypatch.setattr("src.providers.openai_responses.post_json", fake_post_json)

    with pytest.raises(PluginException) as exc_info:
        await adapter.convert_image(DATA_URL)

    assert exc_info.value is upstream_error
    assert calls == 1
