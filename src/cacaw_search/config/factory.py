"""Factory functions to create components from configuration."""

import logging
from pathlib import Path

from cacaw_search.aggregator import SearchAggregator
from cacaw_search.cache import ResultCache
from cacaw_search.config.models import (
    AdapterConfig,
    CacawSearchConfig,
    GoogleAdapterConfig,
    OpenverseAdapterConfig,
    PexelsAdapterConfig,
    PixabayAdapterConfig,
    UnsplashAdapterConfig,
)
from cacaw_search.data import SearchOptions
from cacaw_search.run_logger import RunLogger
from cacaw_search.search import (
    AdapterRegistry,
    GoogleImageAdapter,
    OpenverseAdapter,
    PexelsAdapter,
    PixabayAdapter,
    SourceAdapter,
    UnsplashAdapter,
)
from cacaw_search.settings import ProviderCredentials, SettingsStore, load_credentials

logger = logging.getLogger(__name__)


def create_adapter(config: AdapterConfig, credentials: ProviderCredentials) -> SourceAdapter:
    """Create a source adapter from config.

    Uses explicit type matching rather than getattr.

    Raises:
        ValueError: If the adapter's credentials are missing.
    """
    common = {
        "request_timeout": config.request_timeout_seconds,
        "requests_per_minute": config.requests_per_minute,
    }
    if isinstance(config, OpenverseAdapterConfig):
        return OpenverseAdapter(**common)
    if isinstance(config, PexelsAdapterConfig):
        return PexelsAdapter(api_key=credentials.pexels_api_key, **common)
    if isinstance(config, PixabayAdapterConfig):
        return PixabayAdapter(api_key=credentials.pixabay_api_key, **common)
    if isinstance(config, UnsplashAdapterConfig):
        return UnsplashAdapter(api_key=credentials.unsplash_api_key, **common)
    if isinstance(config, GoogleAdapterConfig):
        return GoogleImageAdapter(
            api_key=credentials.google_api_key,
            search_engine_id=credentials.google_search_engine_id,
            **common,
        )
    # Type checker ensures this is exhaustive
    msg = f"Unknown adapter config type: {type(config)}"
    raise ValueError(msg)


def create_adapters(
    configs: list[AdapterConfig],
    credentials: ProviderCredentials,
) -> list[SourceAdapter]:
    """Create every adapter that can be built; those missing credentials are skipped."""
    adapters: list[SourceAdapter] = []
    for config in configs:
        try:
            adapters.append(create_adapter(config, credentials))
        except ValueError as e:
            logger.warning(f"Skipping {config.type} adapter: {e}")
    return adapters


def create_aggregator(
    config: CacawSearchConfig,
    settings: SettingsStore | None = None,
    run_logger: RunLogger | None = None,
) -> SearchAggregator:
    """Create a search aggregator from root config.

    Args:
        config: Root configuration.
        settings: Settings store holding provider credentials. Environment
            variables fill in keys the store lacks.
        run_logger: Optional RunLogger for per-search stage logging.
    """
    credentials = load_credentials(settings)
    registry = AdapterRegistry(
        create_adapters(config.adapters, credentials),
        default_provider=config.search.default_provider,
    )
    cache = ResultCache(
        max_size=config.cache.max_size,
        default_ttl=config.cache.default_ttl_seconds,
        sweep_interval=config.cache.sweep_interval_seconds,
    )
    defaults = SearchOptions(
        max_results_per_provider=config.search.max_results_per_provider,
        timeout_ms=config.search.timeout_ms,
        fallback_to_synthetic=config.search.fallback_to_synthetic,
    )
    keyed_configs = [c for c in config.adapters if not isinstance(c, OpenverseAdapterConfig)]

    def rebuild_keyed(new_credentials: ProviderCredentials) -> list[SourceAdapter]:
        return create_adapters(keyed_configs, new_credentials)

    logger.info(f"Configured providers: {registry.names()}")
    return SearchAggregator(
        registry,
        cache=cache,
        default_options=defaults,
        run_logger=run_logger,
        adapter_builder=rebuild_keyed,
    )


def create_from_config(
    config: CacawSearchConfig,
    settings: SettingsStore | None = None,
    *,
    log_override: bool | None = None,
    log_dir_override: str | None = None,
) -> tuple[SearchAggregator, RunLogger | None]:
    """Create a complete aggregator from root config.

    Args:
        config: Root configuration.
        settings: Settings store holding provider credentials.
        log_override: Override the config's logging.enabled setting.
        log_dir_override: Override the config's logging.log_dir setting.

    Returns:
        Tuple of (aggregator, run_logger).
        run_logger is None if logging is disabled.
    """
    log_enabled = log_override if log_override is not None else config.logging.enabled
    log_dir = Path(log_dir_override if log_dir_override is not None else config.logging.log_dir)

    run_logger: RunLogger | None = None
    if log_enabled:
        run_logger = RunLogger(log_dir=log_dir, enabled=True)

    aggregator = create_aggregator(config, settings, run_logger=run_logger)
    return (aggregator, run_logger)
