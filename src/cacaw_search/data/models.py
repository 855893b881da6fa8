"""Core data models for cacaw_search."""

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class ImageKind(StrEnum):
    """Kind of artwork a query asks for."""

    PHOTO = "photo"
    ILLUSTRATION = "illustration"
    VECTOR = "vector"
    ANY = "any"


class ColorKind(StrEnum):
    """Colour treatment a query asks for."""

    COLOR = "color"
    GRAYSCALE = "grayscale"
    TRANSPARENT = "transparent"
    ANY = "any"


class UsageRights(StrEnum):
    """Licensing requirement a query asks for."""

    COMMERCIAL = "commercial"
    NONCOMMERCIAL = "noncommercial"
    ANY = "any"


class SafetyLevel(StrEnum):
    """Safe-search strictness."""

    STRICT = "strict"
    MODERATE = "moderate"
    OFF = "off"


@dataclass(frozen=True)
class Query:
    """An image search request for a collectible item.

    ``text`` is the item name. ``item_type`` and ``series_hint`` are appended
    to it when building the string sent upstream (see ``normalized_text``).

    Raises:
        ValueError: If ``text`` is blank.
    """

    text: str
    item_type: str | None = None
    series_hint: str | None = None
    desired_count: int | None = None
    image_kind: ImageKind | None = None
    color_kind: ColorKind | None = None
    usage_rights: UsageRights | None = None
    safety: SafetyLevel | None = None
    min_width: int | None = None
    min_height: int | None = None

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("Search query is required")

    def normalized_text(self) -> str:
        """Join text, item type and series hint with single spaces, skipping empties."""
        terms = [self.text, self.item_type, self.series_hint]
        return " ".join(t.strip() for t in terms if t and t.strip())

    def cache_params(self) -> dict[str, Any]:
        """Plain-dict view of every field, suitable for canonical cache keys."""
        return {k: (v.value if isinstance(v, StrEnum) else v) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class License:
    """Licence attached to a result."""

    kind: str
    url: str | None = None
    allows_commercial: bool = False
    requires_attribution: bool = True


@dataclass(frozen=True)
class ImageResult:
    """An image returned by one source adapter."""

    id: str
    source_url: str
    thumbnail_url: str
    title: str
    width: int
    height: int
    format: str
    source_name: str
    description: str | None = None
    byte_size: int | None = None
    origin_url: str | None = None
    attribution_text: str | None = None
    license: License | None = None
    download_url: str | None = None
    photographer: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class SearchResponse:
    """One adapter's reply to a single search call."""

    results: tuple[ImageResult, ...]
    total_count: int
    provider: str
    next_page_token: str | None = None


@dataclass(frozen=True)
class AggregatedResponse:
    """Merged, deduplicated and ranked results across adapters.

    This is the unit stored in and returned from the result cache.
    """

    results: tuple[ImageResult, ...]
    total_count: int
    contributing_sources: frozenset[str] = frozenset()
    per_source_errors: dict[str, str] = field(default_factory=dict)
    served_from_cache: bool = False
    elapsed_millis: int = 0


@dataclass(frozen=True)
class SearchOptions:
    """Per-call options for the aggregator.

    ``providers`` restricts the fan-out to the named adapters; ``None`` means
    every registered adapter. The filter fields are copied into the ``Query``
    built by ``search_product_images``.
    """

    providers: frozenset[str] | None = None
    max_results_per_provider: int = 10
    timeout_ms: int = 10_000
    fallback_to_synthetic: bool = True
    image_kind: ImageKind = ImageKind.PHOTO
    color_kind: ColorKind = ColorKind.ANY
    usage_rights: UsageRights = UsageRights.ANY
    safety: SafetyLevel = SafetyLevel.MODERATE
    min_width: int | None = None
    min_height: int | None = None
