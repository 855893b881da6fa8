"""Google Custom Search (image mode)."""

import hashlib
import os
from typing import Any

from cacaw_search.data import (
    ColorKind,
    ImageKind,
    ImageResult,
    License,
    Query,
    SafetyLevel,
    SearchResponse,
    UsageRights,
)
from cacaw_search.ratelimit import RateLimitPolicy
from cacaw_search.search.base import AdapterCapabilities, HttpImageAdapter, bucket
from cacaw_search.url import extract_domain, guess_format

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

_IMAGE_TYPES = {
    ImageKind.PHOTO: "photo",
    ImageKind.ILLUSTRATION: "clipart",
    ImageKind.VECTOR: "lineart",
}

_COLOR_TYPES = {
    ColorKind.COLOR: "color",
    ColorKind.GRAYSCALE: "gray",
    ColorKind.TRANSPARENT: "trans",
}

_SIZE_TIERS = [(2048, "xxlarge"), (1024, "xlarge"), (640, "large")]

_COMMERCIAL_RIGHTS = "|".join(["cc_publicdomain", "cc_attribute", "cc_sharealike"])
_NONCOMMERCIAL_RIGHTS = "|".join(["cc_noncommercial", "cc_nonderived"])

# Web results carry no licence metadata; assume the most restrictive terms.
_UNKNOWN_LICENSE = License(kind="Unknown", allows_commercial=False, requires_attribution=True)


class GoogleImageAdapter(HttpImageAdapter):
    """Search images through a Google Programmable Search Engine.

    Args:
        api_key: Google API key (defaults to GOOGLE_API_KEY env var).
        search_engine_id: Engine "cx" id (defaults to GOOGLE_SEARCH_ENGINE_ID env var).
        request_timeout: Per-request transport timeout in seconds.
        requests_per_minute: Override of the declared quota.
    """

    name = "google"
    display_name = "Google Custom Search"
    rate_limit = RateLimitPolicy(requests_per_minute=100, requests_per_day=10_000)
    max_results = 10
    default_count = 10
    capabilities = AdapterCapabilities(
        supports_dimension_filter=True,
        supports_image_kind_filter=True,
        supports_color_filter=True,
        supports_usage_rights_filter=True,
        supports_safety=True,
    )

    def __init__(
        self,
        *,
        api_key: str | None = None,
        search_engine_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key or os.environ.get("GOOGLE_API_KEY")
        self._search_engine_id = search_engine_id or os.environ.get("GOOGLE_SEARCH_ENGINE_ID")
        if not self._api_key or not self._search_engine_id:
            raise ValueError(
                "Google API key and search engine id required. Pass api_key and "
                "search_engine_id or set GOOGLE_API_KEY and GOOGLE_SEARCH_ENGINE_ID env vars."
            )

    def _base_params(self) -> dict[str, str | int]:
        return {
            "key": self._api_key or "",
            "cx": self._search_engine_id or "",
            "searchType": "image",
        }

    def _build_search_request(
        self, query: Query
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        params = self._base_params()
        params["q"] = query.normalized_text()
        params["num"] = self._page_size(query)
        params["safe"] = "off" if query.safety == SafetyLevel.OFF else "active"

        img_type = _IMAGE_TYPES.get(query.image_kind) if query.image_kind else None
        if img_type:
            params["imgType"] = img_type

        color_type = _COLOR_TYPES.get(query.color_kind) if query.color_kind else None
        if color_type:
            params["imgColorType"] = color_type

        size = bucket(query.min_width, _SIZE_TIERS)
        if size:
            params["imgSize"] = size

        if query.usage_rights == UsageRights.COMMERCIAL:
            params["rights"] = _COMMERCIAL_RIGHTS
        elif query.usage_rights == UsageRights.NONCOMMERCIAL:
            params["rights"] = f"{_COMMERCIAL_RIGHTS}|{_NONCOMMERCIAL_RIGHTS}"

        return (GOOGLE_SEARCH_URL, params, {"Accept": "application/json"})

    def _parse_search_response(self, data: Any) -> SearchResponse:
        # Google omits "items" entirely when nothing matched.
        results = tuple(self._parse_item(item) for item in data.get("items") or [])
        total = int((data.get("searchInformation") or {}).get("totalResults") or len(results))

        next_pages = (data.get("queries") or {}).get("nextPage") or []
        next_token = str(next_pages[0]["startIndex"]) if next_pages else None

        return SearchResponse(
            results=results,
            total_count=total,
            provider=self.name,
            next_page_token=next_token,
        )

    def _parse_item(self, item: dict[str, Any]) -> ImageResult:
        link = item["link"]
        image = item.get("image") or {}
        title = item.get("title") or "Untitled"
        context_link = image.get("contextLink")
        mime = item.get("mime") or ""
        return ImageResult(
            id=hashlib.sha1(link.encode()).hexdigest()[:16],
            source_url=link,
            thumbnail_url=image.get("thumbnailLink") or link,
            title=title,
            description=item.get("snippet"),
            width=int(image.get("width") or 0),
            height=int(image.get("height") or 0),
            byte_size=image.get("byteSize"),
            format=mime.removeprefix("image/") if mime.startswith("image/") else guess_format(link),
            source_name=self.name,
            origin_url=context_link,
            attribution_text=f"Image from {extract_domain(context_link or link)}",
            license=_UNKNOWN_LICENSE,
            download_url=link,
            tags=tuple(title.lower().split()[:5]),
        )

    def _build_validation_request(
        self,
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        params = self._base_params()
        params["q"] = "test"
        params["num"] = 1
        return (GOOGLE_SEARCH_URL, params, {})
