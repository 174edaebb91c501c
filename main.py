from astrbot.api import AstrBotConfig
from astrbot.api.event import AstrMessageEvent, filter
from astrbot.api.star import Context, Star

from .src.conversion import (
    BatchReport,
    ImageConverter,
    convert_to_bulk_notes,
    convert_to_multi_note,
    convert_to_single_note,
    prepend_images_to_note,
)
from .src.conversion.modes import MODE_BULK, MODE_MULTI, NO_IMAGES_SELECTED_MESSAGE
from .src.notes import FileVault, VaultFile
from .src.providers import build_provider_adapter, read_provider_adapter_config
from .src.storage import SettingsStore
from .src.storage.keys import (
    API_KEY_SETTING_KEY,
    CONFIG_API_KEY_KEY,
    CONFIG_BASE_URL_KEY,
    CONFIG_IMAGE_DETAIL_KEY,
    CONFIG_MODEL_KEY,
    CONFIG_OUTPUT_FOLDER_KEY,
    CONFIG_PROVIDER_KEY,
    CONFIG_TIMEOUT_SEC_KEY,
    CONFIG_VAULT_PATH_KEY,
)
from .src.tools.convert_args import parse_convert_args, strip_command_prefix
from .src.tools.image import extract_image_assets_from_event
from .src.tools.settings_panel import CredentialField
from .src.utils.errors import PluginException, configuration_error
from .src.utils.log import logger

BUSY_MESSAGE = "A conversion is already running, please wait for it to finish."


class Pic2MarkdownPlugin(Star):
    def __init__(self, context: Context, config: AstrBotConfig):
        super().__init__(context, config=config)
        self.config = config
        self.settings_store = SettingsStore(
            config=config,
            kv_get=self.get_kv_data,
            kv_put=self.put_kv_data,
        )
        self.credential_field = CredentialField()
        # 批次进行中时拒绝新的提交，相当于禁用提交按钮。
        self._busy = False

    async def initialize(self):
        """加载设置：默认值兜底，并立即写回 KV。"""
        await self.settings_store.initialize()
        logger.info("plugin.loaded", {"vault_path": self._config_str(CONFIG_VAULT_PATH_KEY)})

    def _config_str(self, key: str, default: str = "") -> str:
        return str(self.settings_store.get_config_value(key, default) or default).strip()

    def _open_vault(self) -> FileVault:
        vault_path = self._config_str(CONFIG_VAULT_PATH_KEY)
        if not vault_path:
            raise configuration_error(
                "Vault path is not set. Please configure vault_path in the plugin settings."
            )
        return FileVault(vault_path)

    async def _build_converter(self) -> ImageConverter:
        adapter_config = read_provider_adapter_config(
            {
                CONFIG_PROVIDER_KEY: self._config_str(CONFIG_PROVIDER_KEY, "openai"),
                CONFIG_BASE_URL_KEY: self._config_str(CONFIG_BASE_URL_KEY),
                CONFIG_API_KEY_KEY: await self.settings_store.get_api_key(),
                CONFIG_TIMEOUT_SEC_KEY: self.settings_store.get_config_value(
                    CONFIG_TIMEOUT_SEC_KEY, 120
                ),
                CONFIG_MODEL_KEY: self._config_str(CONFIG_MODEL_KEY),
                CONFIG_IMAGE_DETAIL_KEY: self._config_str(CONFIG_IMAGE_DETAIL_KEY, "auto"),
            }
        )
        return ImageConverter(build_provider_adapter(adapter_config))

    @staticmethod
    def _progress(event: AstrMessageEvent):
        async def send(message: str) -> None:
            await event.send(event.plain_result(message))

        return send

    @filter.command_group("p2m")
    def p2m(self) -> None:
        """图片转 Markdown 指令组"""
        pass

    @p2m.command("prepend")
    async def p2m_prepend(self, event: AstrMessageEvent):
        """
        转换笔记中内嵌的所有图片，并将结果插入笔记开头。
        用法：/p2m prepend <笔记路径>
        """
        if self._busy:
            yield event.plain_result(BUSY_MESSAGE)
            return

        note_path = strip_command_prefix(event.message_str, ("p2m", "prepend"))
        self._busy = True
        try:
            vault = self._open_vault()
            converter = await self._build_converter()
            note: VaultFile | None = None
            if note_path:
                note = vault.get_note(note_path)
            report = await prepend_images_to_note(
                note,
                storage=vault,
                metadata=vault,
                converter=converter,
                progress=self._progress(event),
            )
        except PluginException as exc:
            logger.warning("p2m.prepend_rejected", {"error": exc.to_dict()})
            yield event.plain_result(exc.message)
            return
        except Exception as exc:
            logger.exception("p2m prepend failed: %s", exc)
            yield event.plain_result("An error occurred processing the images.")
            return
        finally:
            self._busy = False

        yield event.plain_result(report.summary())

    @p2m.command("convert")
    async def p2m_convert(self, event: AstrMessageEvent):
        """
        将消息附带的图片转换为新笔记，模式 single / multi / bulk。
        用法：/p2m convert <single|multi|bulk> [新笔记名] 【同时上传图片】
        """
        if self._busy:
            yield event.plain_result(BUSY_MESSAGE)
            return

        args_text = strip_command_prefix(event.message_str, ("p2m", "convert"))
        try:
            mode, note_name = parse_convert_args(args_text)
        except ValueError as exc:
            yield event.plain_result(str(exc))
            return

        self._busy = True
        try:
            vault = self._open_vault()
            converter = await self._build_converter()
            timeout_sec = int(
                self.settings_store.get_config_value(CONFIG_TIMEOUT_SEC_KEY, 120)
            )
            assets, ingest_errors = await extract_image_assets_from_event(
                event, timeout_sec=timeout_sec
            )
            for message in ingest_errors:
                await event.send(event.plain_result(message))
            if not assets:
                yield event.plain_result(NO_IMAGES_SELECTED_MESSAGE)
                return

            output_folder = self._config_str(CONFIG_OUTPUT_FOLDER_KEY)
            progress = self._progress(event)
            report: BatchReport
            if mode == MODE_BULK:
                report = await convert_to_bulk_notes(
                    assets,
                    storage=vault,
                    converter=converter,
                    output_folder=output_folder,
                    progress=progress,
                )
            elif mode == MODE_MULTI:
                report = await convert_to_multi_note(
                    assets,
                    note_name,
                    storage=vault,
                    converter=converter,
                    output_folder=output_folder,
                    progress=progress,
                )
            else:
                report = await convert_to_single_note(
                    assets,
                    note_name,
                    storage=vault,
                    converter=converter,
                    output_folder=output_folder,
                    progress=progress,
                )
        except PluginException as exc:
            logger.warning("p2m.convert_rejected", {"error": exc.to_dict()})
            yield event.plain_result(exc.message)
            return
        except Exception as exc:
            logger.exception("p2m convert failed: %s", exc)
            yield event.plain_result("An error occurred processing the images.")
            return
        finally:
            self._busy = False

        yield event.plain_result(report.summary())

    @filter.permission_type(filter.PermissionType.ADMIN)
    @p2m.command("key")
    async def p2m_key(self, event: AstrMessageEvent):
        """
        查看或修改 API 密钥，修改后立即保存。
        用法：/p2m key | /p2m key <密钥> | /p2m key toggle
        """
        args_text = strip_command_prefix(event.message_str, ("p2m", "key"))
        if args_text.lower() == "toggle":
            self.credential_field.toggle()
        elif args_text:
            try:
                await self.settings_store.set_value(API_KEY_SETTING_KEY, args_text)
            except ValueError as exc:
                yield event.plain_result(str(exc))
                return

        api_key = await self.settings_store.get_api_key()
        yield event.plain_result(self.credential_field.render(api_key))

    async def terminate(self):
        """插件卸载时确保设置已落盘。"""
        await self.settings_store.sync_to_kv()
        logger.info("plugin.unloaded", {})
