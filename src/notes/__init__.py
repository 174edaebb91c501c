from .naming import derive_bulk_note_name, ensure_markdown_name, strip_illegal_filename_chars
from .vault import FileVault, NoteMetadata, NoteStorage, VaultFile, parse_embed_links

__all__ = [
    "FileVault",
    "NoteMetadata",
    "NoteStorage",
    "VaultFile",
    "derive_bulk_note_name",
    "ensure_markdown_name",
    "parse_embed_links",
    "strip_illegal_filename_chars",
]
