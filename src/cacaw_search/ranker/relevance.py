"""Keyword relevance ranker with a quality tie-break.

Results are ordered by

    relevance(r) = sum over tokens t of the item name (``Query.text``) of
                   3·[t in title] + 2·[t in description] + 1·[t in tags]

and ties are broken by

    quality(r) = pixel tier + source trust + 2·[commercial] + 1·[no attribution]

Both sorts are stable, so equal results keep their merge order.
"""

import logging

from cacaw_search.data import ImageResult, Query

logger = logging.getLogger(__name__)

# Higher is more trusted. Unknown sources score 0.
SOURCE_TRUST_WEIGHTS: dict[str, int] = {
    "openverse": 4,
    "pexels": 3,
    "pixabay": 2,
    "unsplash": 2,
    "google": 1,
    "synthetic": 0,
}

_PIXEL_TIERS = [(1_000_000, 3), (500_000, 2), (100_000, 1)]


def deduplicate(results: list[ImageResult]) -> list[ImageResult]:
    """Drop results whose (source_url, width, height) was already seen.

    The first occurrence wins and the relative order of survivors is kept.
    """
    seen: set[tuple[str, int, int]] = set()
    unique: list[ImageResult] = []
    for result in results:
        key = (result.source_url, result.width, result.height)
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)

    if len(unique) < len(results):
        logger.debug(f"Dropped {len(results) - len(unique)} duplicate results")
    return unique


def relevance_score(result: ImageResult, query_text: str) -> int:
    """Keyword overlap between the query and a result's text fields."""
    title = result.title.lower()
    description = (result.description or "").lower()
    tags = " ".join(result.tags).lower()

    score = 0
    for token in query_text.lower().split():
        if token in title:
            score += 3
        if token in description:
            score += 2
        if token in tags:
            score += 1
    return score


def quality_score(
    result: ImageResult, trust_weights: dict[str, int] = SOURCE_TRUST_WEIGHTS
) -> int:
    """Resolution, source trust and licence friendliness."""
    score = 0
    pixels = result.pixel_count
    for threshold, points in _PIXEL_TIERS:
        if pixels > threshold:
            score += points
            break

    score += trust_weights.get(result.source_name, 0)

    # An unknown licence counts as not requiring attribution.
    license = result.license
    if license is not None and license.allows_commercial:
        score += 2
    if license is None or not license.requires_attribution:
        score += 1
    return score


class RelevanceRanker:
    """Rank by keyword relevance, then by quality.

    Args:
        trust_weights: Per-source trust overrides merged over the defaults.
    """

    def __init__(self, trust_weights: dict[str, int] | None = None) -> None:
        self._trust = {**SOURCE_TRUST_WEIGHTS, **(trust_weights or {})}

    def rank(self, results: list[ImageResult], query: Query) -> list[ImageResult]:
        # Only the item name is scored; item_type and series_hint are ignored here.
        query_text = query.text
        return sorted(
            results,
            key=lambda r: (-relevance_score(r, query_text), -quality_score(r, self._trust)),
        )
