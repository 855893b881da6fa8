"""Search aggregation module."""

from cacaw_search.aggregator.engine import (
    CACHE_SCOPE,
    PROVIDER_NOT_AVAILABLE,
    AdapterBuilder,
    SearchAggregator,
)

__all__ = [
    "AdapterBuilder",
    "CACHE_SCOPE",
    "PROVIDER_NOT_AVAILABLE",
    "SearchAggregator",
]
