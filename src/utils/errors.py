from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

from .log import summarize_log_value


class PluginErrorCode(str, Enum):
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNSUPPORTED_ASSET = "UNSUPPORTED_ASSET"
    INGESTION_ERROR = "INGESTION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


# 远端推理服务（网络 / 鉴权 / 配额）相关的错误码。
REMOTE_SERVICE_ERROR_CODES = frozenset(
    {
        PluginErrorCode.NETWORK_ERROR,
        PluginErrorCode.TIMEOUT,
        PluginErrorCode.UPSTREAM_ERROR,
    }
)


class PluginException(Exception):
    def __init__(
        self,
        code: PluginErrorCode,
        message: str,
        retryable: bool,
        detail: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.retryable = retryable
        self.detail = dict(detail) if detail else {}

    @property
    def is_remote_service_error(self) -> bool:
        return self.code in REMOTE_SERVICE_ERROR_CODES

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "detail": self.detail,
        }

    def __str__(self) -> str:
        base = f"[{self.code.value}] {self.message} (retryable={self.retryable})"
        if not self.detail:
            return base
        detail_json = json.dumps(
            summarize_log_value(self.detail), ensure_ascii=False, default=str
        )
        return f"{base} detail={detail_json}"


def configuration_error(message: str, **detail: Any) -> PluginException:
    """构造凭据缺失等配置错误，调用方应在任何网络请求前抛出。"""
    return PluginException(
        code=PluginErrorCode.CONFIGURATION_ERROR,
        message=message,
        retryable=False,
        detail=detail,
    )
