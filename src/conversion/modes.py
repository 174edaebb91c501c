"""
三种批量驱动方式，全部按顺序逐张 await：

- prepend：转换当前笔记内嵌的图片，合并后插入到笔记开头（一次写入）
- single / multi：将选中的图片转换为一篇新笔记
- bulk：每张图片各生成一篇新笔记，笔记名取自转换结果首行

单张图片失败不会中断批次，失败信息记录在 `BatchReport.failures`。
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from ..images.asset import ImageAsset
from ..images.mime import resolve_image_mime
from ..notes.naming import derive_bulk_note_name, ensure_markdown_name, join_note_path
from ..notes.vault import NoteMetadata, NoteStorage, VaultFile
from ..utils.errors import PluginErrorCode, PluginException
from ..utils.id import new_run_id
from ..utils.log import StructuredLogEmitter, logger
from .converter import ImageConverter

ProgressCallback = Callable[[str], Awaitable[None]]

MODE_PREPEND = "prepend"
MODE_SINGLE = "single"
MODE_MULTI = "multi"
MODE_BULK = "bulk"

NOTHING_PROCESSED_MESSAGE = "No processable images found or all image processing failed."
NO_IMAGES_SELECTED_MESSAGE = "Please upload at least one image!"
INVALID_NOTE_NAME_MESSAGE = "Please enter a valid file name."
REMOTE_FAILURE_HINT = "Remote service errors may be temporary, try those images again later."
NOTE_READ_ERROR_MESSAGE = "Error reading note content."


@dataclass(slots=True)
class AssetFailure:
    name: str
    code: PluginErrorCode
    message: str
    remote: bool = False
    """失败来自远端推理服务（网络 / 鉴权 / 配额）。"""


@dataclass(slots=True)
class BatchReport:
    mode: str
    run_id: str = field(default_factory=new_run_id)
    processed: int = 0
    """成功转换的图片数量。"""
    notes: list[str] = field(default_factory=list)
    """本次写入或创建的笔记路径。"""
    failures: list[AssetFailure] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    """面向用户的结果提示。"""

    def summary(self) -> str:
        lines = list(self.messages)
        if self.failures:
            names = ", ".join(failure.name for failure in self.failures)
            lines.append(f"{len(self.failures)} image(s) failed: {names}")
            if any(failure.remote for failure in self.failures):
                lines.append(REMOTE_FAILURE_HINT)
        return "\n".join(lines)


async def _notify(progress: ProgressCallback | None, message: str) -> None:
    if progress is not None:
        await progress(message)


def _start(mode: str) -> tuple[BatchReport, StructuredLogEmitter]:
    report = BatchReport(mode=mode)
    log = logger.bind(run_id=report.run_id, mode=mode)
    return report, log


def _check_configured(
    converter: ImageConverter,
    report: BatchReport,
    log: StructuredLogEmitter,
) -> bool:
    try:
        converter.ensure_configured()
    except PluginException as exc:
        log.warning("batch.not_configured", {"error": exc.to_dict()})
        report.messages.append(exc.message)
        return False
    return True


async def _record_failure(
    report: BatchReport,
    log: StructuredLogEmitter,
    progress: ProgressCallback | None,
    name: str,
    exc: PluginException,
) -> None:
    remote = exc.is_remote_service_error
    if remote:
        log.warning("batch.asset_remote_failed", {"name": name, "error": exc.to_dict()})
    else:
        log.error("batch.asset_failed", {"name": name, "error": exc.to_dict()})
    report.failures.append(
        AssetFailure(name=name, code=exc.code, message=exc.message, remote=remote)
    )
    await _notify(progress, f"Error processing {name}: {exc.message}")


async def _convert_asset(
    asset: ImageAsset,
    converter: ImageConverter,
    report: BatchReport,
    log: StructuredLogEmitter,
    progress: ProgressCallback | None,
) -> str | None:
    """转换单张图片；不支持的类型静默跳过，其余失败记录后返回 None。"""
    if not asset.supported:
        log.info("batch.asset_skipped", {"name": asset.name, "reason": "unsupported"})
        return None
    try:
        result = await converter.convert(asset)
    except PluginException as exc:
        await _record_failure(report, log, progress, asset.name, exc)
        return None
    report.processed += 1
    return result


async def _read_vault_image(storage: NoteStorage, file: VaultFile) -> ImageAsset:
    try:
        data = await storage.read_binary(file)
    except (OSError, ValueError) as exc:
        raise PluginException(
            code=PluginErrorCode.INGESTION_ERROR,
            message=f"Failed to read {file.name}: {exc}",
            retryable=False,
            detail={"path": file.path},
        ) from exc
    return ImageAsset(name=file.name, data=data)


async def _create_note(
    storage: NoteStorage,
    path: str,
    content: str,
) -> VaultFile:
    try:
        return await storage.create(path, content.strip())
    except (OSError, ValueError) as exc:
        raise PluginException(
            code=PluginErrorCode.PERSISTENCE_ERROR,
            message=f"Could not create the new note {path}: {exc}",
            retryable=False,
            detail={"path": path},
        ) from exc


async def prepend_images_to_note(
    note: VaultFile | None,
    *,
    storage: NoteStorage,
    metadata: NoteMetadata,
    converter: ImageConverter,
    progress: ProgressCallback | None = None,
) -> BatchReport:
    """转换笔记内嵌图片，并将结果合并后插入到笔记开头。"""
    report, log = _start(MODE_PREPEND)
    if not _check_configured(converter, report, log):
        return report
    if note is None:
        report.messages.append("No active file.")
        return report

    await _notify(progress, "Processing images in current note...")
    try:
        embeds = metadata.get_embeds(note)
    except (OSError, ValueError) as exc:
        log.error("batch.note_read_failed", {"note": note.path, "error": str(exc)})
        report.failures.append(
            AssetFailure(
                name=note.name,
                code=PluginErrorCode.PERSISTENCE_ERROR,
                message=str(exc),
            )
        )
        report.messages.append(NOTE_READ_ERROR_MESSAGE)
        return report
    if not embeds:
        report.messages.append("No embedded images found in the current note.")
        return report

    log.info("batch.start", {"note": note.path, "embeds": len(embeds)})
    sections: list[str] = []
    for link in embeds:
        file = metadata.resolve_link(link, note.path)
        if file is None or resolve_image_mime(file.extension) is None:
            log.debug("batch.embed_skipped", {"link": link})
            continue

        await _notify(progress, f"Processing {file.name}...")
        try:
            asset = await _read_vault_image(storage, file)
        except PluginException as exc:
            await _record_failure(report, log, progress, file.name, exc)
            continue
        result = await _convert_asset(asset, converter, report, log, progress)
        if result is None:
            continue
        sections.append(f"## Image: {file.name}\n\n{result}\n\n")

    if report.processed == 0:
        report.messages.append(NOTHING_PROCESSED_MESSAGE)
        return report

    try:
        original_content = await storage.read(note)
        new_content = "".join(sections).strip() + "\n\n" + original_content
        await storage.modify(note, new_content)
    except (OSError, ValueError) as exc:
        log.error("batch.note_update_failed", {"note": note.path, "error": str(exc)})
        report.failures.append(
            AssetFailure(
                name=note.name,
                code=PluginErrorCode.PERSISTENCE_ERROR,
                message=str(exc),
            )
        )
        report.messages.append("Error updating note content.")
        return report

    report.notes.append(note.path)
    report.messages.append(
        f"{report.processed} image(s) processed and text prepended to the note."
    )
    log.info("batch.done", {"processed": report.processed, "failed": len(report.failures)})
    return report


def _validate_selection(
    assets: Sequence[ImageAsset],
    note_name: str | None,
    report: BatchReport,
) -> bool:
    if not assets:
        report.messages.append(NO_IMAGES_SELECTED_MESSAGE)
        return False
    if note_name is not None and not note_name.strip():
        report.messages.append(INVALID_NOTE_NAME_MESSAGE)
        return False
    return True


async def _write_combined_note(
    report: BatchReport,
    log: StructuredLogEmitter,
    *,
    storage: NoteStorage,
    content: str,
    note_name: str,
    output_folder: str,
    label: str,
) -> None:
    if report.processed == 0:
        report.messages.append(NOTHING_PROCESSED_MESSAGE)
        return
    path = join_note_path(output_folder, ensure_markdown_name(note_name))
    try:
        created = await _create_note(storage, path, content)
    except PluginException as exc:
        log.error("batch.note_create_failed", {"path": path, "error": exc.to_dict()})
        report.messages.append(exc.message)
        return
    report.notes.append(created.path)
    report.messages.append(f'Note "{note_name}" created successfully ({label}).')
    log.info("batch.done", {"note": created.path, "processed": report.processed})


async def convert_to_single_note(
    assets: Sequence[ImageAsset],
    note_name: str,
    *,
    storage: NoteStorage,
    converter: ImageConverter,
    output_folder: str = "",
    progress: ProgressCallback | None = None,
) -> BatchReport:
    """只转换第一张图片，写入一篇新笔记。"""
    report, log = _start(MODE_SINGLE)
    note_name = note_name.strip()
    if not _validate_selection(assets, note_name, report):
        return report
    if not _check_configured(converter, report, log):
        return report

    asset = assets[0]
    await _notify(progress, f"Processing image: {asset.name}")
    result = await _convert_asset(asset, converter, report, log, progress)
    await _write_combined_note(
        report,
        log,
        storage=storage,
        content=result or "",
        note_name=note_name,
        output_folder=output_folder,
        label="Single Image",
    )
    return report


async def convert_to_multi_note(
    assets: Sequence[ImageAsset],
    note_name: str,
    *,
    storage: NoteStorage,
    converter: ImageConverter,
    output_folder: str = "",
    progress: ProgressCallback | None = None,
) -> BatchReport:
    """逐张转换，按 `## Image #<n> - <filename>` 分节合并为一篇新笔记。"""
    report, log = _start(MODE_MULTI)
    note_name = note_name.strip()
    if not _validate_selection(assets, note_name, report):
        return report
    if not _check_configured(converter, report, log):
        return report

    log.info("batch.start", {"assets": len(assets)})
    sections: list[str] = []
    for index, asset in enumerate(assets, start=1):
        await _notify(progress, f"Processing image #{index}: {asset.name}")
        result = await _convert_asset(asset, converter, report, log, progress)
        if result is None:
            continue
        sections.append(f"## Image #{index} - {asset.name}\n\n{result}\n\n")

    await _write_combined_note(
        report,
        log,
        storage=storage,
        content="".join(sections),
        note_name=note_name,
        output_folder=output_folder,
        label="Multi Image",
    )
    return report


async def convert_to_bulk_notes(
    assets: Sequence[ImageAsset],
    *,
    storage: NoteStorage,
    converter: ImageConverter,
    output_folder: str = "",
    progress: ProgressCallback | None = None,
) -> BatchReport:
    """每张图片各建一篇笔记；命名冲突或写入失败只影响当前图片。"""
    report, log = _start(MODE_BULK)
    if not _validate_selection(assets, None, report):
        return report
    if not _check_configured(converter, report, log):
        return report

    log.info("batch.start", {"assets": len(assets)})
    for index, asset in enumerate(assets, start=1):
        await _notify(progress, f"Processing image #{index}: {asset.name}")
        result = await _convert_asset(asset, converter, report, log, progress)
        if result is None:
            continue

        note_name = derive_bulk_note_name(result, index)
        path = join_note_path(output_folder, ensure_markdown_name(note_name))
        try:
            created = await _create_note(storage, path, result)
        except PluginException as exc:
            await _record_failure(report, log, progress, asset.name, exc)
            continue
        report.notes.append(created.path)
        await _notify(progress, f'Created note for "{asset.name}" using bulk mode.')

    if report.notes:
        report.messages.append(f"{len(report.notes)} note(s) created in bulk mode.")
    else:
        report.messages.append(NOTHING_PROCESSED_MESSAGE)
    log.info(
        "batch.done",
        {"notes": len(report.notes), "failed": len(report.failures)},
    )
    return report
