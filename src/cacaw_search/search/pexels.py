"""Pexels photo search."""

import os
from typing import Any

from cacaw_search.data import ColorKind, ImageResult, License, Query, SearchResponse
from cacaw_search.ratelimit import RateLimitPolicy
from cacaw_search.search.base import AdapterCapabilities, HttpImageAdapter, bucket

PEXELS_API_URL = "https://api.pexels.com/v1"

_SIZE_TIERS = [(1920, "large"), (1280, "medium")]

_PEXELS_LICENSE = License(
    kind="Pexels License",
    url="https://www.pexels.com/license/",
    allows_commercial=True,
    requires_attribution=False,
)


class PexelsAdapter(HttpImageAdapter):
    """Search free stock photos on Pexels.

    Args:
        api_key: Pexels API key (defaults to PEXELS_API_KEY env var).
        request_timeout: Per-request transport timeout in seconds.
        requests_per_minute: Override of the declared quota.
    """

    name = "pexels"
    display_name = "Pexels"
    rate_limit = RateLimitPolicy(requests_per_minute=200, requests_per_day=20_000)
    max_results = 80
    default_count = 15
    capabilities = AdapterCapabilities(
        supports_dimension_filter=True,
        supports_color_filter=True,
        supports_usage_rights_filter=True,
    )

    def __init__(self, *, api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key or os.environ.get("PEXELS_API_KEY")
        if not self._api_key:
            raise ValueError("Pexels API key required. Pass api_key or set PEXELS_API_KEY env var.")

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": self._api_key or ""}

    def _build_search_request(
        self, query: Query
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        params: dict[str, str | int] = {
            "query": query.normalized_text(),
            "per_page": self._page_size(query),
            "orientation": "portrait",
        }
        # Pexels only filters by hue; "gray" is the closest match for grayscale.
        if query.color_kind == ColorKind.GRAYSCALE:
            params["color"] = "gray"

        size = bucket(query.min_width, _SIZE_TIERS)
        if size:
            params["size"] = size

        headers = {"Accept": "application/json", **self._auth_headers()}
        return (f"{PEXELS_API_URL}/search", params, headers)

    def _parse_search_response(self, data: Any) -> SearchResponse:
        results = tuple(self._parse_photo(photo) for photo in data["photos"])
        return SearchResponse(
            results=results,
            total_count=data.get("total_results", len(results)),
            provider=self.name,
            next_page_token=data.get("next_page"),
        )

    def _parse_photo(self, photo: dict[str, Any]) -> ImageResult:
        src = photo["src"]
        photographer = photo.get("photographer") or "Unknown"
        return ImageResult(
            id=str(photo["id"]),
            source_url=src["large"],
            thumbnail_url=src.get("small") or src["large"],
            title=photo.get("alt") or f"Photo by {photographer}",
            width=photo["width"],
            height=photo["height"],
            format="jpeg",
            source_name=self.name,
            origin_url=photo.get("url"),
            attribution_text=f"Photo by {photographer} from Pexels",
            license=_PEXELS_LICENSE,
            download_url=src.get("original") or src["large"],
            photographer=photographer,
        )

    def _build_validation_request(
        self,
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        return (f"{PEXELS_API_URL}/curated", {"per_page": 1}, self._auth_headers())
