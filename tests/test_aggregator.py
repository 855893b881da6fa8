"""Tests for SearchAggregator."""

import asyncio
import json
from pathlib import Path

import pytest

from cacaw_search.aggregator import CACHE_SCOPE, PROVIDER_NOT_AVAILABLE, SearchAggregator
from cacaw_search.cache import ResultCache
from cacaw_search.data import ImageResult, License, Query, SearchOptions, SearchResponse
from cacaw_search.errors import AdapterError, AdapterErrorKind
from cacaw_search.fallback import SYNTHETIC_SOURCE
from cacaw_search.ratelimit import RateLimitPolicy
from cacaw_search.run_logger import RunLogger
from cacaw_search.search import AdapterCapabilities, AdapterRegistry, PexelsAdapter
from cacaw_search.settings import InMemorySettingsStore


def _result(
    id: str,
    source: str,
    *,
    title: str = "Item",
    url: str | None = None,
    width: int = 100,
    height: int = 100,
    commercial: bool = False,
) -> ImageResult:
    return ImageResult(
        id=id,
        source_url=url or f"https://{source}.example/{id}.jpg",
        thumbnail_url=f"https://{source}.example/{id}_t.jpg",
        title=title,
        width=width,
        height=height,
        format="jpeg",
        source_name=source,
        license=License(kind="test", allows_commercial=commercial),
    )


class FakeAdapter:
    """In-memory SourceAdapter."""

    rate_limit = RateLimitPolicy(requests_per_minute=1000)
    max_results = 50
    capabilities = AdapterCapabilities()

    def __init__(
        self,
        name: str,
        results: list[ImageResult] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        valid: bool = True,
    ) -> None:
        self.name = name
        self._results = results or []
        self._error = error
        self._delay = delay
        self._valid = valid
        self.calls = 0
        self.cancelled = False
        self.downloads: list[str] = []

    async def search(self, query: Query) -> SearchResponse:
        self.calls += 1
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        return SearchResponse(
            results=tuple(self._results),
            total_count=len(self._results),
            provider=self.name,
        )

    async def download_binary(self, url: str) -> bytes:
        self.downloads.append(url)
        return b"bytes-from-" + self.name.encode()

    async def validate_credentials(self) -> bool:
        return self._valid


class SyncRaisingAdapter(FakeAdapter):
    """Adapter whose search raises before returning an awaitable."""

    def search(self, query: Query) -> SearchResponse:
        raise RuntimeError("boom")


def _aggregator(*adapters: FakeAdapter, **kwargs) -> SearchAggregator:
    return SearchAggregator(AdapterRegistry(list(adapters)), **kwargs)


class TestSearch:
    async def test_merges_and_ranks(self) -> None:
        card_a = _result(
            "a1", "adapter_a", title="Pikachu Trading Card", width=500, height=500, commercial=True
        )
        card_b = _result("b1", "adapter_b", title="Generic Card", width=200, height=200)
        a = FakeAdapter("adapter_a", [card_a])
        b = FakeAdapter("adapter_b", [card_b])
        aggregator = _aggregator(b, a)

        response = await aggregator.search(Query(text="pikachu card"))

        assert [r.id for r in response.results] == ["a1", "b1"]
        assert response.total_count == 2
        assert response.contributing_sources == frozenset({"adapter_a", "adapter_b"})
        assert response.per_source_errors == {}
        assert response.served_from_cache is False

    async def test_all_settle_records_failures(self) -> None:
        good = FakeAdapter("good", [_result("g1", "good")])
        bad = FakeAdapter(
            "bad",
            error=AdapterError(AdapterErrorKind.UPSTREAM, "Bad API error: 500", provider="bad"),
        )
        aggregator = _aggregator(good, bad)

        response = await aggregator.search(Query(text="item"))

        assert [r.id for r in response.results] == ["g1"]
        assert response.contributing_sources == frozenset({"good"})
        assert response.per_source_errors == {"bad": "upstream: Bad API error: 500"}

    async def test_unexpected_exception_is_recorded(self) -> None:
        good = FakeAdapter("good", [_result("g1", "good")])
        broken = FakeAdapter("broken", error=KeyError("oops"))
        response = await _aggregator(good, broken).search(Query(text="item"))
        assert "broken" in response.per_source_errors
        assert "KeyError" in response.per_source_errors["broken"]

    async def test_synchronous_raise_is_recorded(self) -> None:
        good = FakeAdapter("good", [_result("g1", "good")])
        response = await _aggregator(good, SyncRaisingAdapter("sync")).search(
            Query(text="item")
        )
        assert response.per_source_errors["sync"] == "RuntimeError: boom"
        assert len(response.results) == 1

    async def test_timeout_cancels_slow_adapter(self) -> None:
        fast = FakeAdapter("fast", [_result("f1", "fast")])
        slow = FakeAdapter("slow", [_result("s1", "slow")], delay=5.0)
        aggregator = _aggregator(fast, slow)

        response = await aggregator.search(Query(text="item"), SearchOptions(timeout_ms=50))

        assert [r.id for r in response.results] == ["f1"]
        assert response.per_source_errors["slow"].startswith("timeout:")
        assert slow.cancelled is True
        assert response.elapsed_millis < 5000

    async def test_results_capped_per_provider(self) -> None:
        many = FakeAdapter("many", [_result(str(i), "many") for i in range(30)])
        response = await _aggregator(many).search(
            Query(text="item"), SearchOptions(max_results_per_provider=5)
        )
        assert len(response.results) == 5

    async def test_dedup_prefers_default_provider(self) -> None:
        shared = "https://shared.example/x.jpg"
        openverse = FakeAdapter("openverse", [_result("ov", "openverse", url=shared)])
        other = FakeAdapter("other", [_result("ot", "other", url=shared)])
        response = await _aggregator(other, openverse).search(Query(text="item"))
        assert [r.id for r in response.results] == ["ov"]

    async def test_unknown_provider_recorded(self) -> None:
        good = FakeAdapter("good", [_result("g1", "good")])
        response = await _aggregator(good).search(
            Query(text="item"), SearchOptions(providers=frozenset({"good", "nope"}))
        )
        assert response.per_source_errors == {"nope": PROVIDER_NOT_AVAILABLE}
        assert len(response.results) == 1

    async def test_provider_selection_limits_fan_out(self) -> None:
        a = FakeAdapter("a", [_result("a1", "a")])
        b = FakeAdapter("b", [_result("b1", "b")])
        options = SearchOptions(providers=frozenset({"b"}))
        await _aggregator(a, b).search(Query(text="item"), options)
        assert a.calls == 0
        assert b.calls == 1

    async def test_zero_results_provider_contributes_without_error(self) -> None:
        empty = FakeAdapter("empty", [])
        good = FakeAdapter("good", [_result("g1", "good")])
        response = await _aggregator(empty, good).search(Query(text="item"))
        assert "empty" in response.contributing_sources
        assert "empty" not in response.per_source_errors


class TestFallback:
    async def test_all_fail_uses_synthetic_and_skips_cache(self) -> None:
        cache = ResultCache()
        failing = [
            FakeAdapter(name, error=AdapterError(AdapterErrorKind.TIMEOUT, "slow", provider=name))
            for name in ("a", "b")
        ]
        aggregator = _aggregator(*failing, cache=cache)

        response = await aggregator.search(Query(text="funko pop batman"))

        assert len(response.results) >= 1
        assert all(r.source_name == SYNTHETIC_SOURCE for r in response.results)
        assert SYNTHETIC_SOURCE in response.contributing_sources
        assert set(response.per_source_errors) == {"a", "b"}
        assert len(cache) == 0

    async def test_fallback_disabled_returns_empty(self) -> None:
        cache = ResultCache()
        aggregator = _aggregator(FakeAdapter("empty", []), cache=cache)

        response = await aggregator.search(
            Query(text="funko"), SearchOptions(fallback_to_synthetic=False)
        )

        assert response.results == ()
        assert response.total_count == 0
        assert len(cache) == 0

    async def test_no_adapters_falls_back(self) -> None:
        response = await _aggregator().search(Query(text="mario"))
        assert response.results
        assert response.contributing_sources == frozenset({SYNTHETIC_SOURCE})


class TestCaching:
    async def test_second_search_served_from_cache(self) -> None:
        adapter = FakeAdapter("a", [_result("a1", "a")])
        aggregator = _aggregator(adapter)
        query = Query(text="item")

        first = await aggregator.search(query)
        second = await aggregator.search(query)

        assert first.served_from_cache is False
        assert second.served_from_cache is True
        assert second.results == first.results
        assert adapter.calls == 1

    async def test_cache_key_includes_provider_selection(self) -> None:
        a = FakeAdapter("a", [_result("a1", "a")])
        b = FakeAdapter("b", [_result("b1", "b")])
        aggregator = _aggregator(a, b)
        query = Query(text="item")

        await aggregator.search(query, SearchOptions(providers=frozenset({"a"})))
        response = await aggregator.search(query, SearchOptions(providers=frozenset({"b"})))

        assert response.served_from_cache is False
        assert b.calls == 1

    async def test_clear_cache(self) -> None:
        adapter = FakeAdapter("a", [_result("a1", "a")])
        aggregator = _aggregator(adapter)
        await aggregator.search(Query(text="item"))

        aggregator.clear_cache()
        await aggregator.search(Query(text="item"))

        assert adapter.calls == 2
        assert aggregator.get_cache_statistics().size == 1

    async def test_stores_under_aggregated_scope(self) -> None:
        cache = ResultCache()
        aggregator = _aggregator(FakeAdapter("a", [_result("a1", "a")]), cache=cache)
        query = Query(text="item")
        await aggregator.search(query)

        params = {
            "query": query.cache_params(),
            "providers": ["a"],
            "max_results_per_provider": 10,
        }
        assert cache.has(CACHE_SCOPE, params)

    async def test_mutating_response_does_not_touch_cache(self) -> None:
        good = FakeAdapter("good", [_result("g1", "good")])
        bad = FakeAdapter("bad", error=AdapterError(AdapterErrorKind.UPSTREAM, "down"))
        aggregator = _aggregator(good, bad)
        query = Query(text="item")

        first = await aggregator.search(query)
        first.per_source_errors["bad"] = "changed"
        first.per_source_errors["good"] = "changed"
        second = await aggregator.search(query)
        second.per_source_errors.clear()
        third = await aggregator.search(query)

        assert second.served_from_cache is True
        assert third.per_source_errors == {"bad": "upstream: down"}

    async def test_unregistered_provider_not_replayed_from_cache(self) -> None:
        adapter = FakeAdapter("openverse", [_result("o1", "openverse")])
        aggregator = _aggregator(adapter)
        query = Query(text="item")

        first = await aggregator.search(
            query, SearchOptions(providers=frozenset({"openverse", "bogus"}))
        )
        second = await aggregator.search(query, SearchOptions(providers=frozenset({"openverse"})))
        third = await aggregator.search(
            query, SearchOptions(providers=frozenset({"openverse", "other"}))
        )

        assert first.per_source_errors == {"bogus": PROVIDER_NOT_AVAILABLE}
        assert second.served_from_cache is True
        assert second.per_source_errors == {}
        assert third.served_from_cache is True
        assert third.per_source_errors == {"other": PROVIDER_NOT_AVAILABLE}
        assert adapter.calls == 1


class TestSearchProductImages:
    async def test_builds_query_from_hints_and_options(self) -> None:
        seen: list[Query] = []

        class Recording(FakeAdapter):
            async def search(self, query: Query) -> SearchResponse:
                seen.append(query)
                return await super().search(query)

        adapter = Recording("rec", [_result("r1", "rec")])
        aggregator = _aggregator(adapter)

        await aggregator.search_product_images(
            "Pikachu",
            item_type="card",
            series_hint="Base Set",
            options=SearchOptions(max_results_per_provider=7, min_width=800),
        )

        query = seen[0]
        assert query.normalized_text() == "Pikachu card Base Set"
        assert query.desired_count == 7
        assert query.min_width == 800

    async def test_hints_do_not_change_ranking(self) -> None:
        small = _result("small", "pexels", title="Charizard")
        titled = _result("titled", "pexels", title="Charizard card")
        large = _result("large", "openverse", title="Charizard", width=2000, height=2000)
        aggregator = _aggregator(
            FakeAdapter("openverse", [large]), FakeAdapter("pexels", [small, titled])
        )

        response = await aggregator.search_product_images("Charizard", item_type="card")

        assert [r.id for r in response.results] == ["large", "small", "titled"]

    async def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            await _aggregator().search_product_images("  ")


class TestProviders:
    def test_list_available_providers(self) -> None:
        aggregator = _aggregator(FakeAdapter("b"), FakeAdapter("openverse"))
        assert aggregator.list_available_providers() == ["openverse", "b"]

    async def test_validate_providers(self) -> None:
        aggregator = _aggregator(FakeAdapter("ok"), FakeAdapter("bad", valid=False))
        assert await aggregator.validate_providers() == {"ok": True, "bad": False}

    async def test_update_credentials_rebuilds_keyed_adapters(self) -> None:
        aggregator = _aggregator(FakeAdapter("openverse", [_result("o1", "openverse")]))
        await aggregator.search(Query(text="item"))

        names = aggregator.update_credentials(InMemorySettingsStore({"pexels_api_key": "pk"}))

        assert names == ["pexels"]
        assert aggregator.list_available_providers() == ["openverse", "pexels"]
        assert isinstance(aggregator.registry.get("pexels"), PexelsAdapter)
        assert aggregator.get_cache_statistics().size == 0

    async def test_update_credentials_removes_revoked_adapters(self) -> None:
        aggregator = _aggregator(FakeAdapter("openverse"), FakeAdapter("pexels"))
        names = aggregator.update_credentials(InMemorySettingsStore())
        assert names == []
        assert aggregator.list_available_providers() == ["openverse"]

    async def test_update_credentials_uses_custom_builder(self) -> None:
        built = FakeAdapter("google")
        aggregator = SearchAggregator(
            AdapterRegistry([FakeAdapter("openverse")]),
            adapter_builder=lambda credentials: [built],
        )
        aggregator.update_credentials(InMemorySettingsStore())
        assert aggregator.registry.get("google") is built


class TestDownload:
    async def test_download_through_provider(self) -> None:
        adapter = FakeAdapter("a")
        data = await _aggregator(adapter).download_image("https://a.example/x.jpg", "a")
        assert data == b"bytes-from-a"
        assert adapter.downloads == ["https://a.example/x.jpg"]

    async def test_download_direct_when_provider_unknown(self, fake_http) -> None:
        fake_http.content = b"raw"
        data = await _aggregator().download_image("https://img.example/x.jpg", "nope")
        assert data == b"raw"
        assert fake_http.last.url == "https://img.example/x.jpg"

    async def test_direct_download_failure_raises(self, fake_http) -> None:
        fake_http.status = 404
        fake_http.content = b""
        with pytest.raises(AdapterError) as exc_info:
            await _aggregator().download_image("https://img.example/missing.jpg")
        assert exc_info.value.kind == AdapterErrorKind.UPSTREAM


class TestLifecycle:
    async def test_context_manager_runs_sweep(self) -> None:
        aggregator = _aggregator(cache=ResultCache(sweep_interval=60.0))
        async with aggregator:
            assert aggregator.cache.sweeping
        assert not aggregator.cache.sweeping


class TestRunLogging:
    async def test_stages_logged(self, tmp_path: Path) -> None:
        run_logger = RunLogger(log_dir=tmp_path)
        good = FakeAdapter("good", [_result("g1", "good")])
        bad = FakeAdapter("bad", error=AdapterError(AdapterErrorKind.UPSTREAM, "down"))
        aggregator = _aggregator(good, bad, run_logger=run_logger)

        await aggregator.search(Query(text="item"))

        path = run_logger.last_log_path
        assert path is not None
        data = json.loads(path.read_text())
        stages = [s["stage"] for s in data["stages"]]
        assert stages[0] == "cache_lookup"
        assert stages.count("search") == 2
        assert stages[-2:] == ["deduplication", "ranking"]
        errors = {s["component"]: s["error"] for s in data["stages"] if s["stage"] == "search"}
        assert errors == {"good": None, "bad": "upstream: down"}
        assert data["final_result_count"] == 1
        assert data["contributing_sources"] == ["good"]
        assert data["per_source_errors"] == {"bad": "upstream: down"}
        assert [r["id"] for r in data["top_results"]] == ["g1"]
