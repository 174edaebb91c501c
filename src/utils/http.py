from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, TypedDict

import aiohttp

from .errors import PluginErrorCode, PluginException
from .log import StructuredLogEmitter

logger = logging.getLogger(__name__)
structured_log = StructuredLogEmitter(logger=logger)


class PostJsonSuccessResponse(TypedDict):
    data: dict[str, Any]
    elapsed_ms: int


class GetBytesSuccessResponse(TypedDict):
    data: bytes
    mime: str
    elapsed_ms: int


def _mask_headers(headers: dict[str, str]) -> dict[str, str]:
    secret_keys = {"authorization", "cookie", "set-cookie", "x-api-key"}
    masked: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in secret_keys:
            masked[key] = "<redacted>"
            continue
        masked[key] = value
    return masked


def _elapsed_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)


def _ensure_timeout(timeout_sec: int, *, source: str, url: str) -> None:
    if timeout_sec <= 0:
        raise PluginException(
            code=PluginErrorCode.UPSTREAM_ERROR,
            message="timeout_sec must be > 0.",
            retryable=False,
            detail={
                "source": source,
                "url": url,
                "timeout_sec": timeout_sec,
            },
        )


def _upstream_status_error(
    source: str,
    status: int,
    detail: dict[str, Any],
) -> PluginException:
    # retryable 仅作信息标注，本插件不做自动重试。
    return PluginException(
        code=PluginErrorCode.UPSTREAM_ERROR,
        message=f"{source} HTTP {status}",
        retryable=(status >= 500 or status == 429),
        detail=detail,
    )


def _transport_error(
    exc: BaseException,
    *,
    source: str,
    detail: dict[str, Any],
) -> PluginException:
    if isinstance(exc, asyncio.TimeoutError):
        return PluginException(
            code=PluginErrorCode.TIMEOUT,
            message=f"{source} request timed out.",
            retryable=True,
            detail=detail,
        )
    return PluginException(
        code=PluginErrorCode.NETWORK_ERROR,
        message=f"{source} request failed.",
        retryable=True,
        detail={
            **detail,
            "client_error": str(exc),
            "client_error_type": type(exc).__name__,
        },
    )


async def post_json(
    *,
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str],
    timeout_sec: int = 30,
    source: str = "Upstream",
) -> PostJsonSuccessResponse:
    """发送 JSON POST 请求并返回结果对象。

    约定：
    - 传输层错误映射为 `NETWORK_ERROR/TIMEOUT`
    - 非 2xx HTTP 响应映射为 `UPSTREAM_ERROR`
    - 成功响应必须是 JSON object（dict）
    - 成功返回结构：`{"data": <json_object>, "elapsed_ms": <int>}`
    """
    _ensure_timeout(timeout_sec, source=source, url=url)

    masked_headers = _mask_headers(headers)
    started_at = time.perf_counter()
    request_error_detail = {
        "source": source,
        "url": url,
        "timeout_sec": timeout_sec,
        "headers": masked_headers,
        "payload": payload,
    }
    structured_log.debug("http.request", request_error_detail)

    # 使用 total timeout，覆盖连接、读写和响应等待总耗时。
    timeout = aiohttp.ClientTimeout(total=timeout_sec)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=payload, headers=headers) as response:
                raw_text = await response.text()
                masked_response_headers = _mask_headers(dict(response.headers))
                elapsed_ms = _elapsed_ms(started_at)
                structured_log.debug(
                    "http.response",
                    {
                        "elapsed_ms": elapsed_ms,
                        "status_code": response.status,
                        "headers": masked_response_headers,
                        "body": raw_text,
                    },
                )
                if response.status >= 400:
                    raise _upstream_status_error(
                        source,
                        response.status,
                        {
                            **request_error_detail,
                            "elapsed_ms": elapsed_ms,
                            "status_code": response.status,
                            "headers": masked_response_headers,
                            "body": raw_text,
                        },
                    )
    except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
        raise _transport_error(
            exc,
            source=source,
            detail={**request_error_detail, "elapsed_ms": _elapsed_ms(started_at)},
        ) from exc

    # 网络链路成功后再解析 JSON，便于区分“传输错误”与“响应格式错误”。
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise PluginException(
            code=PluginErrorCode.UPSTREAM_ERROR,
            message=f"{source} returned invalid JSON.",
            retryable=True,
            detail={
                **request_error_detail,
                "elapsed_ms": _elapsed_ms(started_at),
                "body": raw_text,
            },
        ) from exc

    if not isinstance(data, dict):
        raise PluginException(
            code=PluginErrorCode.UPSTREAM_ERROR,
            message=f"{source} response must be a JSON object.",
            retryable=True,
            detail={
                **request_error_detail,
                "elapsed_ms": _elapsed_ms(started_at),
                "response_type": type(data).__name__,
            },
        )

    return {
        "data": data,
        "elapsed_ms": _elapsed_ms(started_at),
    }


async def get_bytes(
    *,
    url: str,
    timeout_sec: int = 60,
    source: str = "Download",
) -> GetBytesSuccessResponse:
    """下载 HTTP 资源，返回字节、响应声明的 MIME 与耗时。"""
    _ensure_timeout(timeout_sec, source=source, url=url)

    started_at = time.perf_counter()
    request_detail = {"source": source, "url": url, "timeout_sec": timeout_sec}
    structured_log.debug("http.download", request_detail)

    timeout = aiohttp.ClientTimeout(total=timeout_sec)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as response:
                content = await response.read()
                content_type = response.headers.get("Content-Type", "")
                if response.status >= 400:
                    raise _upstream_status_error(
                        source,
                        response.status,
                        {
                            **request_detail,
                            "elapsed_ms": _elapsed_ms(started_at),
                            "status_code": response.status,
                        },
                    )
    except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
        raise _transport_error(
            exc,
            source=source,
            detail={**request_detail, "elapsed_ms": _elapsed_ms(started_at)},
        ) from exc

    return {
        "data": content,
        "mime": content_type.split(";", 1)[0].strip().lower(),
        "elapsed_ms": _elapsed_ms(started_at),
    }
