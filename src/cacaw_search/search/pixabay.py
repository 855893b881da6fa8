"""Pixabay image search."""

import os
from typing import Any

from cacaw_search.data import ColorKind, ImageKind, ImageResult, License, Query, SafetyLevel
from cacaw_search.data import SearchResponse
from cacaw_search.ratelimit import RateLimitPolicy
from cacaw_search.search.base import AdapterCapabilities, HttpImageAdapter, bucket

PIXABAY_API_URL = "https://pixabay.com/api/"

_SIZE_TIERS = [(1920, "1920"), (1280, "1280")]

_PIXABAY_LICENSE = License(
    kind="Pixabay License",
    url="https://pixabay.com/service/license-summary/",
    allows_commercial=True,
    requires_attribution=False,
)


class PixabayAdapter(HttpImageAdapter):
    """Search photos, illustrations and vectors on Pixabay.

    Args:
        api_key: Pixabay API key (defaults to PIXABAY_API_KEY env var).
        request_timeout: Per-request transport timeout in seconds.
        requests_per_minute: Override of the declared quota.
    """

    name = "pixabay"
    display_name = "Pixabay"
    rate_limit = RateLimitPolicy(requests_per_minute=100, requests_per_day=5_000)
    max_results = 200
    default_count = 20
    capabilities = AdapterCapabilities(
        supports_dimension_filter=True,
        supports_image_kind_filter=True,
        supports_color_filter=True,
        supports_usage_rights_filter=True,
        supports_safety=True,
    )

    def __init__(self, *, api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key or os.environ.get("PIXABAY_API_KEY")
        if not self._api_key:
            raise ValueError(
                "Pixabay API key required. Pass api_key or set PIXABAY_API_KEY env var."
            )

    def _page_size(self, query: Query) -> int:
        # Pixabay rejects per_page below 3.
        return max(3, super()._page_size(query))

    def _build_search_request(
        self, query: Query
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        params: dict[str, str | int] = {
            "key": self._api_key or "",
            "q": query.normalized_text(),
            "per_page": self._page_size(query),
            "safesearch": "true" if query.safety == SafetyLevel.STRICT else "false",
            "orientation": "vertical",
        }
        if query.image_kind and query.image_kind != ImageKind.ANY:
            params["image_type"] = query.image_kind.value

        if query.color_kind in (ColorKind.GRAYSCALE, ColorKind.TRANSPARENT):
            params["colors"] = query.color_kind.value

        min_width = bucket(query.min_width, _SIZE_TIERS)
        if min_width:
            params["min_width"] = min_width
        min_height = bucket(query.min_height, _SIZE_TIERS)
        if min_height:
            params["min_height"] = min_height

        return (PIXABAY_API_URL, params, {"Accept": "application/json"})

    def _parse_search_response(self, data: Any) -> SearchResponse:
        results = tuple(self._parse_hit(hit) for hit in data["hits"])
        return SearchResponse(
            results=results,
            total_count=data.get("total", len(results)),
            provider=self.name,
        )

    def _parse_hit(self, hit: dict[str, Any]) -> ImageResult:
        tags = tuple(t.strip() for t in (hit.get("tags") or "").split(",") if t.strip())
        user = hit.get("user") or "Unknown"
        return ImageResult(
            id=str(hit["id"]),
            source_url=hit["webformatURL"],
            thumbnail_url=hit.get("previewURL") or hit["webformatURL"],
            title=", ".join(tags[:3]) or "Pixabay image",
            width=hit["imageWidth"],
            height=hit["imageHeight"],
            byte_size=hit.get("imageSize"),
            format="jpeg",
            source_name=self.name,
            origin_url=hit.get("pageURL"),
            attribution_text=f"Image by {user} from Pixabay",
            license=_PIXABAY_LICENSE,
            download_url=hit.get("largeImageURL") or hit.get("fullHDURL") or hit["webformatURL"],
            photographer=user,
            tags=tags,
        )

    def _build_validation_request(
        self,
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        return (PIXABAY_API_URL, {"key": self._api_key or "", "q": "test", "per_page": 3}, {})
