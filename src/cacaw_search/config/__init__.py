"""Configuration module for cacaw_search."""

from cacaw_search.config.factory import (
    create_adapter,
    create_adapters,
    create_aggregator,
    create_from_config,
)
from cacaw_search.config.loader import get_default_config_path, load_config
from cacaw_search.config.models import (
    AdapterConfig,
    CacawSearchConfig,
    CacheConfig,
    GoogleAdapterConfig,
    LoggingConfig,
    OpenverseAdapterConfig,
    PexelsAdapterConfig,
    PixabayAdapterConfig,
    SearchDefaultsConfig,
    UnsplashAdapterConfig,
)

__all__ = [
    "AdapterConfig",
    "CacawSearchConfig",
    "CacheConfig",
    "GoogleAdapterConfig",
    "LoggingConfig",
    "OpenverseAdapterConfig",
    "PexelsAdapterConfig",
    "PixabayAdapterConfig",
    "SearchDefaultsConfig",
    "UnsplashAdapterConfig",
    "create_adapter",
    "create_adapters",
    "create_aggregator",
    "create_from_config",
    "get_default_config_path",
    "load_config",
]
