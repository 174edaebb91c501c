from .base import ProviderAdapter
from .config import read_provider_adapter_config
from .factory import SUPPORTED_PROVIDERS, build_provider_adapter
from .schema import ConversionOutput, ProviderAdapterConfig

__all__ = [
    "ConversionOutput",
    "ProviderAdapter",
    "ProviderAdapterConfig",
    "SUPPORTED_PROVIDERS",
    "build_provider_adapter",
    "read_provider_adapter_config",
]
