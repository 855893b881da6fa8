"""Search aggregator: cache, fan-out, fallback, dedup, rank."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from types import TracebackType

from cacaw_search.cache import CacheStats, ResultCache
from cacaw_search.data import AggregatedResponse, ImageResult, Query, SearchOptions
from cacaw_search.errors import AdapterError, AdapterErrorKind
from cacaw_search.fallback import SYNTHETIC_SOURCE, synthesize_results
from cacaw_search.ranker import RelevanceRanker, ResultRanker, deduplicate
from cacaw_search.run_logger import RunLogger
from cacaw_search.search.base import SourceAdapter, http_get
from cacaw_search.search.registry import (
    CREDENTIALED_PROVIDERS,
    AdapterRegistry,
    build_credentialed_adapters,
)
from cacaw_search.settings import ProviderCredentials, SettingsStore, load_credentials

logger = logging.getLogger(__name__)

CACHE_SCOPE = "aggregated"
PROVIDER_NOT_AVAILABLE = "Provider not available"

AdapterBuilder = Callable[[ProviderCredentials], list[SourceAdapter]]


def _describe(error: BaseException) -> str:
    if isinstance(error, AdapterError):
        return str(error)
    return f"{type(error).__name__}: {error}"


class SearchAggregator:
    """Public entry point for multi-source image search.

    Flow for each search:
    1. Look the query up in the result cache
    2. Fan out to every selected adapter concurrently, each bounded by a deadline
    3. Collect every outcome; failures are recorded, never raised
    4. Synthesize placeholder results if nothing came back
    5. Deduplicate, rank, cache (real results only) and return

    Args:
        registry: Adapters to search.
        cache: Result cache (a default-sized one is created if omitted).
        ranker: Result ranker (defaults to RelevanceRanker).
        default_options: Options used when a call passes none.
        run_logger: Optional RunLogger recording each search's stages.
        adapter_builder: Rebuilds the credentialed adapters in
            ``update_credentials`` (defaults to every keyed adapter).
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        *,
        cache: ResultCache | None = None,
        ranker: ResultRanker | None = None,
        default_options: SearchOptions | None = None,
        run_logger: RunLogger | None = None,
        adapter_builder: AdapterBuilder | None = None,
    ) -> None:
        self._registry = registry
        self._cache = cache if cache is not None else ResultCache()
        self._ranker = ranker if ranker is not None else RelevanceRanker()
        self._default_options = default_options or SearchOptions()
        self._run_logger = run_logger
        self._adapter_builder = adapter_builder or build_credentialed_adapters

    @property
    def registry(self) -> AdapterRegistry:
        return self._registry

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def default_options(self) -> SearchOptions:
        """Options applied when a search passes none."""
        return self._default_options

    # -- lifecycle --

    async def start(self) -> None:
        """Start background cache maintenance."""
        self._cache.start()

    async def aclose(self) -> None:
        """Stop background cache maintenance."""
        await self._cache.stop()

    async def __aenter__(self) -> "SearchAggregator":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # -- search --

    async def search_product_images(
        self,
        name: str,
        item_type: str | None = None,
        series_hint: str | None = None,
        options: SearchOptions | None = None,
    ) -> AggregatedResponse:
        """Search for images of a collectible item.

        Args:
            name: Item name (must not be blank).
            item_type: Optional item type appended to the query text.
            series_hint: Optional series/franchise appended to the query text.
            options: Per-call options; the aggregator defaults apply if omitted.

        Raises:
            ValueError: If ``name`` is blank.
        """
        opts = options or self._default_options
        query = Query(
            text=name,
            item_type=item_type,
            series_hint=series_hint,
            desired_count=opts.max_results_per_provider,
            image_kind=opts.image_kind,
            color_kind=opts.color_kind,
            usage_rights=opts.usage_rights,
            safety=opts.safety,
            min_width=opts.min_width,
            min_height=opts.min_height,
        )
        return await self.search(query, opts)

    async def search(
        self,
        query: Query,
        options: SearchOptions | None = None,
    ) -> AggregatedResponse:
        """Run ``query`` against the selected adapters.

        Adapter failures are reported in ``per_source_errors`` and never
        raised.
        """
        opts = options or self._default_options
        started = time.monotonic()
        if self._run_logger:
            self._run_logger.start_run(query)

        adapters, missing = self._registry.select(opts.providers)
        cache_params = {
            "query": query.cache_params(),
            "providers": sorted(a.name for a in adapters),
            "max_results_per_provider": opts.max_results_per_provider,
        }

        # Step 1: Cache lookup
        t0 = time.monotonic()
        cached: AggregatedResponse | None = self._cache.get(CACHE_SCOPE, cache_params)
        if self._run_logger:
            self._run_logger.log_stage(
                stage="cache_lookup",
                component=type(self._cache).__name__,
                input_data=cache_params,
                output_data={"hit": cached is not None},
                duration_seconds=time.monotonic() - t0,
            )
        unavailable = {name: PROVIDER_NOT_AVAILABLE for name in missing}
        for name in missing:
            logger.warning(f"Requested provider '{name}' is not registered")

        if cached is not None:
            logger.info(f"Cache hit for '{query.normalized_text()}'")
            response = replace(
                cached,
                per_source_errors={**unavailable, **cached.per_source_errors},
                served_from_cache=True,
                elapsed_millis=_elapsed_ms(started),
            )
            if self._run_logger:
                self._run_logger.finish_run(response)
            return response
        logger.info(f"Cache miss for '{query.normalized_text()}'")

        # Step 2: Fan out, wait for every adapter to settle
        timeout = opts.timeout_ms / 1000
        outcomes = await asyncio.gather(
            *(self._search_adapter(adapter, query, timeout) for adapter in adapters),
            return_exceptions=True,
        )

        adapter_errors: dict[str, str] = {}
        merged: list[ImageResult] = []
        contributing: set[str] = set()
        for adapter, outcome in zip(adapters, outcomes, strict=True):
            if isinstance(outcome, Exception):
                adapter_errors[adapter.name] = _describe(outcome)
                logger.warning(f"{adapter.name} failed: {_describe(outcome)}")
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            results = outcome[: opts.max_results_per_provider]
            if not results:
                logger.info(f"{adapter.name} returned no results")
            else:
                logger.info(f"{adapter.name} returned {len(results)} results")
            contributing.add(adapter.name)
            merged.extend(results)

        # Step 3: Fallback
        synthetic = False
        if not merged and opts.fallback_to_synthetic:
            t0 = time.monotonic()
            merged = synthesize_results(query)
            synthetic = True
            contributing.add(SYNTHETIC_SOURCE)
            logger.info(f"No results from any provider, using {len(merged)} placeholders")
            if self._run_logger:
                self._run_logger.log_stage(
                    stage="fallback",
                    component=SYNTHETIC_SOURCE,
                    input_data=query,
                    output_data=merged,
                    duration_seconds=time.monotonic() - t0,
                )

        # Step 4: Deduplicate
        t0 = time.monotonic()
        unique = deduplicate(merged)
        if self._run_logger:
            self._run_logger.log_stage(
                stage="deduplication",
                component="source_url_dimensions",
                input_data={"result_count": len(merged)},
                output_data={"result_count": len(unique)},
                duration_seconds=time.monotonic() - t0,
            )

        # Step 5: Rank
        t0 = time.monotonic()
        ranked = self._ranker.rank(unique, query)
        if self._run_logger:
            self._run_logger.log_stage(
                stage="ranking",
                component=type(self._ranker).__name__,
                input_data={"result_count": len(unique)},
                output_data=[r.id for r in ranked],
                duration_seconds=time.monotonic() - t0,
            )

        response = AggregatedResponse(
            results=tuple(ranked),
            total_count=len(ranked),
            contributing_sources=frozenset(contributing),
            per_source_errors={**unavailable, **adapter_errors},
            served_from_cache=False,
            elapsed_millis=_elapsed_ms(started),
        )

        # Step 6: Cache genuine results only. Unregistered names depend on the
        # request, not the key, so they stay out of the stored copy.
        if ranked and not synthetic:
            self._cache.set(
                CACHE_SCOPE, cache_params, replace(response, per_source_errors=adapter_errors)
            )

        if self._run_logger:
            self._run_logger.finish_run(response)
        return response

    async def _search_adapter(
        self,
        adapter: SourceAdapter,
        query: Query,
        timeout: float,
    ) -> tuple[ImageResult, ...]:
        """Search one adapter under a deadline; the adapter task is cancelled on expiry."""
        t0 = time.monotonic()
        try:
            response = await asyncio.wait_for(adapter.search(query), timeout=timeout)
        except TimeoutError as e:
            error = AdapterError(
                AdapterErrorKind.TIMEOUT,
                f"No response within {round(timeout * 1000)}ms",
                provider=adapter.name,
            )
            self._log_search_stage(adapter, query, None, time.monotonic() - t0, error)
            raise error from e
        except Exception as e:
            self._log_search_stage(adapter, query, None, time.monotonic() - t0, e)
            raise

        self._log_search_stage(adapter, query, response.results, time.monotonic() - t0, None)
        return response.results

    def _log_search_stage(
        self,
        adapter: SourceAdapter,
        query: Query,
        results: tuple[ImageResult, ...] | None,
        duration: float,
        error: BaseException | None,
    ) -> None:
        if not self._run_logger:
            return
        self._run_logger.log_stage(
            stage="search",
            component=adapter.name,
            input_data=query.normalized_text(),
            output_data={"result_count": len(results)} if results is not None else None,
            duration_seconds=duration,
            error=_describe(error) if error is not None else None,
        )

    # -- providers --

    def list_available_providers(self) -> list[str]:
        """Registered provider names, default provider first."""
        return self._registry.names()

    async def validate_providers(self) -> dict[str, bool]:
        """Check every registered adapter's credentials concurrently."""
        adapters, _ = self._registry.select(None)
        checks = await asyncio.gather(
            *(adapter.validate_credentials() for adapter in adapters),
            return_exceptions=True,
        )
        return {a.name: check is True for a, check in zip(adapters, checks, strict=True)}

    def update_credentials(self, settings: SettingsStore | None = None) -> list[str]:
        """Reload credentials and rebuild the adapters that need them.

        The result cache is cleared, since cached responses may reflect the
        previous set of providers.

        Args:
            settings: Settings store to read credentials from; None reads the
                environment only.

        Returns:
            Names of the credentialed adapters now registered.
        """
        credentials = load_credentials(settings)
        for name in CREDENTIALED_PROVIDERS:
            self._registry.unregister(name)

        rebuilt = self._adapter_builder(credentials)
        for adapter in rebuilt:
            self._registry.register(adapter)

        self._cache.clear()
        names = [adapter.name for adapter in rebuilt]
        logger.info(f"Credentials updated, keyed providers: {names}")
        return names

    # -- downloads --

    async def download_image(self, url: str, provider: str | None = None) -> bytes:
        """Fetch image bytes, through the named provider when it is registered.

        Raises:
            AdapterError: On any failure.
        """
        adapter = self._registry.get(provider) if provider else None
        if adapter is not None:
            return await adapter.download_binary(url)

        response = await http_get(
            url,
            headers={"Accept": "image/*"},
            provider=provider,
            display_name="Image host",
        )
        return response.content

    # -- cache --

    def get_cache_statistics(self) -> CacheStats:
        """Cache occupancy and hit counters."""
        return self._cache.stats()

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Result cache cleared")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
