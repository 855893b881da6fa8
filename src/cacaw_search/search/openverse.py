"""Openverse image search (openly licensed media, no API key required)."""

from typing import Any

from cacaw_search.data import (
    ImageKind,
    ImageResult,
    License,
    Query,
    SafetyLevel,
    SearchResponse,
    UsageRights,
)
from cacaw_search.ratelimit import RateLimitPolicy
from cacaw_search.search.base import USER_AGENT, AdapterCapabilities, HttpImageAdapter, bucket
from cacaw_search.url import guess_format

OPENVERSE_API_URL = "https://api.openverse.org/v1"

_CATEGORIES = {
    ImageKind.PHOTO: "photograph",
    ImageKind.ILLUSTRATION: "illustration",
}

_SIZE_TIERS = [(1280, "large"), (640, "medium"), (1, "small")]

# Licences that carry no attribution requirement.
_PUBLIC_DOMAIN = {"cc0", "pdm"}
_COMMERCIAL = _PUBLIC_DOMAIN | {"by", "by-sa", "by-nd"}


def is_commercial_license(code: str | None) -> bool:
    """Whether an Openverse licence code permits commercial use.

    Public-domain marks and the CC licences without an ``nc`` element do;
    unknown codes are treated as non-commercial.
    """
    if not code:
        return False
    return code.lower().removeprefix("cc-") in _COMMERCIAL


class OpenverseAdapter(HttpImageAdapter):
    """Search openly licensed images through the Openverse API.

    This is the default source: it needs no credentials and its results are
    CC-licensed, so the ranker trusts it most.

    Args:
        request_timeout: Per-request transport timeout in seconds.
        requests_per_minute: Override of the anonymous quota (60/min).
    """

    name = "openverse"
    display_name = "Openverse"
    rate_limit = RateLimitPolicy(requests_per_minute=60)
    max_results = 100
    default_count = 20
    capabilities = AdapterCapabilities(
        supports_dimension_filter=True,
        supports_image_kind_filter=True,
        supports_usage_rights_filter=True,
        supports_safety=True,
    )

    def _build_search_request(
        self, query: Query
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        params: dict[str, str | int] = {
            "q": query.normalized_text(),
            "page_size": self._page_size(query),
            "mature": "true" if query.safety == SafetyLevel.OFF else "false",
        }

        category = _CATEGORIES.get(query.image_kind) if query.image_kind else None
        if category:
            params["category"] = category

        if query.usage_rights == UsageRights.COMMERCIAL:
            params["license_type"] = "commercial"

        size = bucket(query.min_width, _SIZE_TIERS)
        if size:
            params["size"] = size

        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        return (f"{OPENVERSE_API_URL}/images/", params, headers)

    def _parse_search_response(self, data: Any) -> SearchResponse:
        items = data["results"]
        if not isinstance(items, list):
            raise TypeError(f"'results' is {type(items).__name__}, expected list")

        results = tuple(self._parse_item(item) for item in items)
        return SearchResponse(
            results=results,
            total_count=data.get("result_count") or len(results),
            provider=self.name,
        )

    def _parse_item(self, item: dict[str, Any]) -> ImageResult:
        url = item["url"]
        code = item.get("license") or "unknown"
        tags = tuple(
            tag.get("name", "") if isinstance(tag, dict) else str(tag)
            for tag in item.get("tags") or []
        )
        return ImageResult(
            id=str(item["id"]),
            source_url=url,
            thumbnail_url=item.get("thumbnail") or url,
            title=item.get("title") or "Untitled",
            description=item.get("description"),
            width=item.get("width") or 0,
            height=item.get("height") or 0,
            byte_size=item.get("filesize"),
            format=item.get("filetype") or guess_format(url),
            source_name=self.name,
            origin_url=item.get("foreign_landing_url") or url,
            attribution_text=item.get("attribution"),
            license=License(
                kind=code,
                url=item.get("license_url"),
                allows_commercial=is_commercial_license(code),
                requires_attribution=code.lower() not in _PUBLIC_DOMAIN,
            ),
            download_url=url,
            photographer=item.get("creator"),
            tags=tuple(t for t in tags if t),
        )

    def _build_validation_request(
        self,
    ) -> tuple[str, dict[str, str | int], dict[str, str]]:
        return (
            f"{OPENVERSE_API_URL}/images/",
            {"q": "test", "page_size": 1},
            {"Accept": "application/json", "User-Agent": USER_AGENT},
        )
