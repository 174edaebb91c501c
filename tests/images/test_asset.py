from __future__ import annotations

import base64
from io import BytesIO
from typing import Any

import pytest
from PIL import Image
from src.images.asset import ImageAsset, load_image_asset
from src.utils.errors import PluginErrorCode, PluginException


def _build_png_bytes() -> bytes:
    image = Image.new("RGB", (8, 8), (255, 0, 0))
    output = BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


def _build_jpeg_bytes() -> bytes:
    image = Image.new("RGB", (8, 8), (0, 0, 255))
    output = BytesIO()
    image.save(output, format="JPEG")
    return output.getvalue()


def test_image_asset_mime_follows_extension() -> None:
    """验证：ImageAsset 的 MIME 由文件扩展名决定（忽略大小写）。"""
    asset = ImageAsset(name="Sketch.JPEG", data=b"\x00")

    assert asset.extension == "jpeg"
    assert asset.mime == "image/jpeg"
    assert asset.supported is True
    assert asset.to_data_url() == "data:image/jpeg;base64,AA=="


def test_image_asset_unsupported_raises_on_encode() -> None:
    asset = ImageAsset(name="scan.tiff", data=b"\x00")

    assert asset.mime is None
    with pytest.raises(PluginException) as exc_info:
        asset.to_data_url()
    assert exc_info.value.code == PluginErrorCode.UNSUPPORTED_ASSET


@pytest.mark.asyncio
async def test_load_image_asset_from_base64_sniffs_extension() -> None:
    """验证：base64 图片没有文件名时，按字节嗅探补全扩展名。"""
    png_bytes = _build_png_bytes()
    encoded = base64.b64encode(png_bytes).decode("ascii")

    asset = await load_image_asset(f"base64://{encoded}", fallback_stem="image_1")

    assert asset.name == "image_1.png"
    assert asset.data == png_bytes
    assert asset.mime == "image/png"


@pytest.mark.asyncio
async def test_load_image_asset_from_data_url_uses_declared_mime() -> None:
    jpeg_bytes = _build_jpeg_bytes()
    data_url = f"data:image/jpeg;base64,{base64.b64encode(jpeg_bytes).decode('ascii')}"

    asset = await load_image_asset(data_url, fallback_stem="image_2")

    assert asset.name == "image_2.jpg"
    assert asset.data == jpeg_bytes


@pytest.mark.asyncio
async def test_load_image_asset_from_http_url_keeps_url_name(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """验证：http 图片使用 URL 末段作为文件名。"""
    png_bytes = _build_png_bytes()
    captured: dict[str, Any] = {}

    async def fake_get_bytes(*, url: str, timeout_sec: int, **_: Any) -> dict[str, Any]:
        captured["url"] = url
        captured["timeout_sec"] = timeout_sec
        return {"data": png_bytes, "mime": "image/png", "elapsed_ms": 3}

    monkeypatch.setattr("src.images.asset.get_bytes", fake_get_bytes)

    asset = await load_image_asset(
        "https://example.com/notes/Lecture%201.png?x=1",
        fallback_stem="image_1",
        timeout_sec=15,
    )

    assert captured == {
        "url": "https://example.com/notes/Lecture%201.png?x=1",
        "timeout_sec": 15,
    }
    assert asset.name == "Lecture 1.png"
    assert asset.data == png_bytes


@pytest.mark.asyncio
async def test_load_image_asset_download_failure_is_ingestion_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def fake_get_bytes(**_: Any) -> dict[str, Any]:
        raise PluginException(
            code=PluginErrorCode.NETWORK_ERROR,
            message="Download request failed.",
            retryable=True,
        )

    monkeypatch.setattr("src.images.asset.get_bytes", fake_get_bytes)

    with pytest.raises(PluginException) as exc_info:
        await load_image_asset("https://example.com/a.png", fallback_stem="image_1")

    assert exc_info.value.code == PluginErrorCode.INGESTION_ERROR
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_load_image_asset_invalid_base64_is_ingestion_error() -> None:
    with pytest.raises(PluginException) as exc_info:
        await load_image_asset("%%%not-base64", fallback_stem="image_3")

    assert exc_info.value.code == PluginErrorCode.INGESTION_ERROR
    assert "image_3" in exc_info.value.message
