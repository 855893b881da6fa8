"""Adapter registry keyed by source name."""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from cacaw_search.search.base import SourceAdapter
from cacaw_search.search.google import GoogleImageAdapter
from cacaw_search.search.pexels import PexelsAdapter
from cacaw_search.search.pixabay import PixabayAdapter
from cacaw_search.search.unsplash import UnsplashAdapter
from cacaw_search.settings import ProviderCredentials

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "openverse"


class AdapterRegistry:
    """Holds the adapters an aggregator can fan out to.

    Iteration order is registration order, except that the default provider
    always comes first.

    Args:
        adapters: Adapters to register up front.
        default_provider: Name that is ordered ahead of every other adapter.
    """

    def __init__(
        self,
        adapters: list[SourceAdapter] | None = None,
        *,
        default_provider: str = DEFAULT_PROVIDER,
    ) -> None:
        self._adapters: dict[str, SourceAdapter] = {}
        self._default_provider = default_provider
        for adapter in adapters or []:
            self.register(adapter)

    @property
    def default_provider(self) -> str:
        return self._default_provider

    def register(self, adapter: SourceAdapter) -> None:
        """Add ``adapter``, replacing any adapter registered under the same name."""
        if adapter.name in self._adapters:
            logger.info(f"Replacing registered adapter '{adapter.name}'")
        self._adapters[adapter.name] = adapter

    def unregister(self, name: str) -> SourceAdapter | None:
        return self._adapters.pop(name, None)

    def get(self, name: str) -> SourceAdapter | None:
        return self._adapters.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    def names(self) -> list[str]:
        """Registered names, default provider first."""
        names = list(self._adapters)
        if self._default_provider in self._adapters:
            names.remove(self._default_provider)
            names.insert(0, self._default_provider)
        return names

    def select(self, requested: frozenset[str] | None) -> tuple[list[SourceAdapter], list[str]]:
        """Resolve a provider selection.

        Args:
            requested: Names to use, or None for every registered adapter.

        Returns:
            (adapters in fan-out order, requested names that are not registered).
        """
        if requested is None:
            return [self._adapters[n] for n in self.names()], []

        selected = [self._adapters[n] for n in self.names() if n in requested]
        missing = sorted(n for n in requested if n not in self._adapters)
        return selected, missing


# Adapters that need credentials, with the constructor kwargs drawn from them.
_CREDENTIALED: dict[str, tuple[type, Callable[[ProviderCredentials], dict[str, Any]]]] = {
    "pexels": (PexelsAdapter, lambda c: {"api_key": c.pexels_api_key}),
    "pixabay": (PixabayAdapter, lambda c: {"api_key": c.pixabay_api_key}),
    "unsplash": (UnsplashAdapter, lambda c: {"api_key": c.unsplash_api_key}),
    "google": (
        GoogleImageAdapter,
        lambda c: {"api_key": c.google_api_key, "search_engine_id": c.google_search_engine_id},
    ),
}

CREDENTIALED_PROVIDERS: tuple[str, ...] = tuple(_CREDENTIALED)


def build_credentialed_adapters(
    credentials: ProviderCredentials,
    *,
    only: Iterable[str] | None = None,
    adapter_options: Mapping[str, Mapping[str, Any]] | None = None,
) -> list[SourceAdapter]:
    """Construct every keyed adapter whose credentials are available.

    Adapters whose constructor rejects the credentials are skipped with a
    warning.

    Args:
        credentials: Keys to hand to the adapters.
        only: Restrict to these provider names.
        adapter_options: Extra constructor kwargs per provider name
            (e.g. ``request_timeout``).
    """
    wanted = set(only) if only is not None else set(_CREDENTIALED)
    options = adapter_options or {}
    adapters: list[SourceAdapter] = []
    for name, (cls, credential_kwargs) in _CREDENTIALED.items():
        if name not in wanted:
            continue
        try:
            adapters.append(cls(**credential_kwargs(credentials), **options.get(name, {})))
        except ValueError as e:
            logger.warning(f"Skipping {name}: {e}")
    return adapters
