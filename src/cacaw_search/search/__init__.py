"""Content source adapters."""

from cacaw_search.search.base import AdapterCapabilities, HttpImageAdapter, SourceAdapter
from cacaw_search.search.google import GoogleImageAdapter
from cacaw_search.search.openverse import OpenverseAdapter
from cacaw_search.search.pexels import PexelsAdapter
from cacaw_search.search.pixabay import PixabayAdapter
from cacaw_search.search.registry import (
    CREDENTIALED_PROVIDERS,
    DEFAULT_PROVIDER,
    AdapterRegistry,
    build_credentialed_adapters,
)
from cacaw_search.search.unsplash import UnsplashAdapter

__all__ = [
    "AdapterCapabilities",
    "AdapterRegistry",
    "CREDENTIALED_PROVIDERS",
    "DEFAULT_PROVIDER",
    "GoogleImageAdapter",
    "HttpImageAdapter",
    "OpenverseAdapter",
    "PexelsAdapter",
    "PixabayAdapter",
    "SourceAdapter",
    "UnsplashAdapter",
    "build_credentialed_adapters",
]
