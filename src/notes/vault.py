from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import unquote

# Obsidian 内嵌：![[target]]、![[target|alias]]、![[target#sub]]
# Markdown 图片：![alt](target "title")、![alt](<target with spaces>)
_EMBED_RE = re.compile(
    r"!\[\[(?P<wiki>[^\]|]+?)(?:\|[^\]]*)?\]\]"
    r"|!\[[^\]]*\]\(\s*(?:<(?P<angle>[^>]+)>|(?P<plain>[^)\s]+))(?:\s+\"[^\"]*\")?\s*\)"
)
_URL_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass(slots=True, frozen=True)
class VaultFile:
    """vault 内的文件句柄，`path` 为相对 vault 根目录的 POSIX 路径。"""

    path: str

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lower().removeprefix(".")

    @property
    def parent(self) -> str:
        parent = PurePosixPath(self.path).parent.as_posix()
        return "" if parent == "." else parent


class NoteStorage(Protocol):
    async def read_binary(self, file: VaultFile) -> bytes: ...

    async def read(self, file: VaultFile) -> str: ...

    async def modify(self, file: VaultFile, text: str) -> None: ...

    async def create(self, path: str, text: str) -> VaultFile: ...


class NoteMetadata(Protocol):
    def get_embeds(self, note: VaultFile) -> list[str]: ...

    def resolve_link(self, link: str, source_path: str) -> VaultFile | None: ...


def parse_embed_links(text: str) -> list[str]:
    """按出现顺序提取笔记中的内嵌链接，去掉 `#subpath` 并解码 URL 转义。"""
    links: list[str] = []
    for match in _EMBED_RE.finditer(text):
        raw = match.group("wiki") or match.group("angle") or match.group("plain")
        if not raw:
            continue
        raw = raw.strip()
        if match.group("wiki") is None:
            if _URL_SCHEME_RE.match(raw):
                continue
            raw = unquote(raw)
        link = raw.split("#", 1)[0].strip()
        if link:
            links.append(link)
    return links


def normalize_vault_path(path: str) -> str | None:
    """规范化为 vault 相对路径；越出根目录时返回 None。"""
    parts: list[str] = []
    for part in PurePosixPath(path.replace("\\", "/")).parts:
        if part in {"", ".", "/"}:
            continue
        if part == "..":
            if not parts:
                return None
            parts.pop()
            continue
        parts.append(part)
    return "/".join(parts) if parts else None


class FileVault:
    """基于本地目录的笔记库，同时提供存储与元数据能力。"""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()

    def _abs(self, file: VaultFile | str) -> Path:
        path = file.path if isinstance(file, VaultFile) else file
        normalized = normalize_vault_path(path)
        if normalized is None:
            raise ValueError(f"Path escapes the vault: {path}")
        return self.root / normalized

    def get_file(self, path: str) -> VaultFile | None:
        normalized = normalize_vault_path(path)
        if normalized is None or not (self.root / normalized).is_file():
            return None
        return VaultFile(normalized)

    def get_note(self, path: str) -> VaultFile | None:
        """按路径查找 Markdown 笔记，可省略 `.md` 后缀；非 Markdown 文件返回 None。"""
        for candidate in (path, f"{path}.md"):
            file = self.get_file(candidate)
            if file is not None and file.extension == "md":
                return file
        return None

    def iter_files(self) -> list[VaultFile]:
        if not self.root.is_dir():
            return []
        files = [
            VaultFile(path.relative_to(self.root).as_posix())
            for path in self.root.rglob("*")
            if path.is_file()
            and not any(part.startswith(".") for part in path.relative_to(self.root).parts)
        ]
        return sorted(files, key=lambda f: f.path)

    async def read_binary(self, file: VaultFile) -> bytes:
        return self._abs(file).read_bytes()

    async def read(self, file: VaultFile) -> str:
        return self._abs(file).read_text(encoding="utf-8")

    async def modify(self, file: VaultFile, text: str) -> None:
        target = self._abs(file)
        if not target.is_file():
            raise FileNotFoundError(f"Note does not exist: {file.path}")
        target.write_text(text, encoding="utf-8")

    async def create(self, path: str, text: str) -> VaultFile:
        target = self._abs(path)
        if target.exists():
            raise FileExistsError(f"File already exists: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return VaultFile(target.relative_to(self.root).as_posix())

    def get_embeds(self, note: VaultFile) -> list[str]:
        try:
            text = self._abs(note).read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return parse_embed_links(text)

    def resolve_link(self, link: str, source_path: str) -> VaultFile | None:
        """
        解析链接到具体文件，依次尝试：
        - 以 vault 根为基准的完整路径
        - 以来源笔记所在目录为基准的相对路径
        - 同名文件（路径后缀匹配），多个候选时取路径最短者
        """
        linkpath = link.split("#", 1)[0].strip()
        if not linkpath:
            return None

        exact = self.get_file(linkpath)
        if exact is not None:
            return exact

        source_dir = VaultFile(source_path).parent if source_path else ""
        if source_dir:
            relative = self.get_file(f"{source_dir}/{linkpath}")
            if relative is not None:
                return relative

        normalized = normalize_vault_path(linkpath)
        if normalized is None:
            return None
        suffix = f"/{normalized}"
        candidates = [
            file
            for file in self.iter_files()
            if file.path == normalized or file.path.endswith(suffix)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda f: (f.path.count("/"), f.path))
