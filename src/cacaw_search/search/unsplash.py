"""Unsplash photo search."""

import os
from typing import Any

from cacaw_search.data import ColorKind, ImageResult, License, Query, SearchResponse
from cacaw_search.ratelimit import RateLimitPolicy
from cacaw_search.search.base import AdapterCapabilities, HttpImageAdapter

UNSPLASH_API_URL = "https://api.unsplash.com"

_COLORS = {
    ColorKind.GRAYSCALE: "black_and_white",
}

_UNSPLASH_LICENSE = License(
    kind="Unsplash License",
    url="https://unsplash.com/license",
    allows_commercial=True,
    requires_attribution=True,
)


class UnsplashAdapter(HttpImageAdapter):
    """Search photos on Unsplash.

    Args:
        api_key: Unsplash access key (defaults to UNSPLASH_ACCESS_KEY env var).
        request_timeout: Per-request transport timeout in seconds.
        requests_per_minute: Override of the declared quota.
    """

    name = "unsplash"
    display_name = "Unsplash"
    rate_limit = RateLimitPolicy(requests_per_minute=50, requests_per_day=5_000)
    max_results = 30
    default_count = 10
    capabilities = AdapterCapabilities(
        supports_color_filter=True,
        supports_usage_rights_filter=True,
    )

    def __init__(self, *, api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key or os.environ.get("UNSPLASH_ACCESS_KEY")
        if not self._api_key:
            raise ValueError(
                "Unsplash access key required. Pass api_key or set UNSPLASH_ACCESS_KEY env var."
            )

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Client-ID {self._api_key}"}

    def _build_search_request(
        self, query: Query
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        params: dict[str, str | int] = {
            "query": query.normalized_text(),
            "per_page": self._page_size(query),
            "orientation": "portrait",
        }
        color = _COLORS.get(query.color_kind) if query.color_kind else None
        if color:
            params["color"] = color

        headers = {"Accept-Version": "v1", **self._auth_headers()}
        return (f"{UNSPLASH_API_URL}/search/photos", params, headers)

    def _parse_search_response(self, data: Any) -> SearchResponse:
        results = tuple(self._parse_photo(photo) for photo in data["results"])
        return SearchResponse(
            results=results,
            total_count=data.get("total", len(results)),
            provider=self.name,
        )

    def _parse_photo(self, photo: dict[str, Any]) -> ImageResult:
        urls = photo["urls"]
        user = (photo.get("user") or {}).get("name") or "Unknown"
        title = photo.get("alt_description") or photo.get("description")
        tags = tuple(
            tag["title"]
            for tag in photo.get("tags") or []
            if isinstance(tag, dict) and tag.get("title")
        )
        return ImageResult(
            id=str(photo["id"]),
            source_url=urls["regular"],
            thumbnail_url=urls.get("small") or urls["regular"],
            title=title or f"Photo by {user}",
            description=photo.get("description"),
            width=photo["width"],
            height=photo["height"],
            format="jpeg",
            source_name=self.name,
            origin_url=(photo.get("links") or {}).get("html"),
            attribution_text=f"Photo by {user} on Unsplash",
            license=_UNSPLASH_LICENSE,
            download_url=urls.get("full") or urls["regular"],
            photographer=user,
            tags=tags,
        )

    def _build_validation_request(
        self,
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        return (f"{UNSPLASH_API_URL}/photos", {"per_page": 1}, self._auth_headers())
