# config
CONFIG_PROVIDER_KEY = "provider"
CONFIG_BASE_URL_KEY = "base_url"
CONFIG_API_KEY_KEY = "api_key"
CONFIG_MODEL_KEY = "model"
CONFIG_TIMEOUT_SEC_KEY = "timeout_sec"
CONFIG_IMAGE_DETAIL_KEY = "image_detail"
CONFIG_VAULT_PATH_KEY = "vault_path"
CONFIG_OUTPUT_FOLDER_KEY = "output_folder"

# settings (KV)
SETTINGS_KEY = "settings"
LEGACY_SETTING_KEY = "my_setting"
API_KEY_SETTING_KEY = "api_key"
