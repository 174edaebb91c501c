from .converter import ImageConverter
from .modes import (
    AssetFailure,
    BatchReport,
    convert_to_bulk_notes,
    convert_to_multi_note,
    convert_to_single_note,
    prepend_images_to_note,
)

__all__ = [
    "AssetFailure",
    "BatchReport",
    "ImageConverter",
    "convert_to_bulk_notes",
    "convert_to_multi_note",
    "convert_to_single_note",
    "prepend_images_to_note",
]
