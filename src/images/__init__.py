from .asset import ImageAsset, load_image_asset
from .codec import decode_data_url, encode_data_url
from .mime import SUPPORTED_IMAGE_EXTENSIONS, resolve_image_mime

__all__ = [
    "ImageAsset",
    "SUPPORTED_IMAGE_EXTENSIONS",
    "decode_data_url",
    "encode_data_url",
    "load_image_asset",
    "resolve_image_mime",
]
