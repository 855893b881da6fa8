"""Pydantic configuration models for cacaw_search components."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

# ============================================================
# Adapter Configs
# ============================================================


class OpenverseAdapterConfig(BaseModel):
    """Configuration for OpenverseAdapter (no credentials needed)."""

    type: Literal["openverse"] = "openverse"
    request_timeout_seconds: float = 10.0
    requests_per_minute: int | None = None

    model_config = {"frozen": True}


class PexelsAdapterConfig(BaseModel):
    """Configuration for PexelsAdapter."""

    type: Literal["pexels"] = "pexels"
    request_timeout_seconds: float = 10.0
    requests_per_minute: int | None = None

    model_config = {"frozen": True}


class PixabayAdapterConfig(BaseModel):
    """Configuration for PixabayAdapter."""

    type: Literal["pixabay"] = "pixabay"
    request_timeout_seconds: float = 10.0
    requests_per_minute: int | None = None

    model_config = {"frozen": True}


class UnsplashAdapterConfig(BaseModel):
    """Configuration for UnsplashAdapter."""

    type: Literal["unsplash"] = "unsplash"
    request_timeout_seconds: float = 10.0
    requests_per_minute: int | None = None

    model_config = {"frozen": True}


class GoogleAdapterConfig(BaseModel):
    """Configuration for GoogleImageAdapter."""

    type: Literal["google"] = "google"
    request_timeout_seconds: float = 10.0
    requests_per_minute: int | None = None

    model_config = {"frozen": True}


AdapterConfig = Annotated[
    OpenverseAdapterConfig
    | PexelsAdapterConfig
    | PixabayAdapterConfig
    | UnsplashAdapterConfig
    | GoogleAdapterConfig,
    Field(discriminator="type"),
]


# ============================================================
# Cache Config
# ============================================================


class CacheConfig(BaseModel):
    """Configuration for the in-process result cache."""

    max_size: int = Field(default=500, ge=1)
    default_ttl_seconds: float = Field(default=3600.0, gt=0)
    sweep_interval_seconds: float = Field(default=600.0, gt=0)

    model_config = {"frozen": True}


# ============================================================
# Search Defaults Config
# ============================================================


class SearchDefaultsConfig(BaseModel):
    """Options applied when a search call passes none."""

    max_results_per_provider: int = Field(default=10, ge=1)
    timeout_ms: int = Field(default=10_000, gt=0)
    fallback_to_synthetic: bool = True
    default_provider: str = "openverse"

    model_config = {"frozen": True}


# ============================================================
# Logging Config
# ============================================================


class LoggingConfig(BaseModel):
    """Configuration for per-search run logging."""

    enabled: bool = False
    log_dir: str = "logs"

    model_config = {"frozen": True}


# ============================================================
# Root Config
# ============================================================


def _default_adapters() -> list[AdapterConfig]:
    return [OpenverseAdapterConfig()]


class CacawSearchConfig(BaseModel):
    """Root configuration for cacaw_search."""

    adapters: list[AdapterConfig] = Field(default_factory=_default_adapters)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    search: SearchDefaultsConfig = Field(default_factory=SearchDefaultsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}
