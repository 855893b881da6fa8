"""cacaw_search: multi-source image search for collectible inventories."""

from cacaw_search.aggregator import SearchAggregator
from cacaw_search.cache import CacheStats, ResultCache, make_cache_key
from cacaw_search.config import CacawSearchConfig, create_from_config, load_config
from cacaw_search.data import (
    AggregatedResponse,
    ColorKind,
    ImageKind,
    ImageResult,
    License,
    Query,
    SafetyLevel,
    SearchOptions,
    SearchResponse,
    UsageRights,
)
from cacaw_search.errors import AdapterError, AdapterErrorKind, RateLimitExceeded
from cacaw_search.fallback import SYNTHETIC_SOURCE, synthesize_results
from cacaw_search.ranker import RelevanceRanker, ResultRanker, deduplicate
from cacaw_search.ratelimit import FixedWindowRateLimiter, RateLimitPolicy
from cacaw_search.run_logger import RunLogger
from cacaw_search.search import (
    AdapterCapabilities,
    AdapterRegistry,
    GoogleImageAdapter,
    OpenverseAdapter,
    PexelsAdapter,
    PixabayAdapter,
    SourceAdapter,
    UnsplashAdapter,
)
from cacaw_search.settings import (
    InMemorySettingsStore,
    JsonFileSettingsStore,
    ProviderCredentials,
    SettingsStore,
    load_credentials,
    save_credentials,
)
from cacaw_search.url import extract_domain

__all__ = [
    # Models
    "AggregatedResponse",
    "ColorKind",
    "ImageKind",
    "ImageResult",
    "License",
    "Query",
    "SafetyLevel",
    "SearchOptions",
    "SearchResponse",
    "UsageRights",
    # Errors
    "AdapterError",
    "AdapterErrorKind",
    "RateLimitExceeded",
    # Functions
    "deduplicate",
    "extract_domain",
    "make_cache_key",
    "synthesize_results",
    "SYNTHETIC_SOURCE",
    # Protocols
    "ResultRanker",
    "SettingsStore",
    "SourceAdapter",
    # Adapters
    "AdapterCapabilities",
    "AdapterRegistry",
    "GoogleImageAdapter",
    "OpenverseAdapter",
    "PexelsAdapter",
    "PixabayAdapter",
    "UnsplashAdapter",
    # Infrastructure
    "CacheStats",
    "FixedWindowRateLimiter",
    "RateLimitPolicy",
    "RelevanceRanker",
    "ResultCache",
    # Aggregation
    "SearchAggregator",
    # Settings
    "InMemorySettingsStore",
    "JsonFileSettingsStore",
    "ProviderCredentials",
    "load_credentials",
    "save_credentials",
    # Logging
    "RunLogger",
    # Config
    "CacawSearchConfig",
    "create_from_config",
    "load_config",
]
