"""Result deduplication and ranking."""

from cacaw_search.ranker.base import ResultRanker
from cacaw_search.ranker.relevance import (
    SOURCE_TRUST_WEIGHTS,
    RelevanceRanker,
    deduplicate,
    quality_score,
    relevance_score,
)

__all__ = [
    "RelevanceRanker",
    "ResultRanker",
    "SOURCE_TRUST_WEIGHTS",
    "deduplicate",
    "quality_score",
    "relevance_score",
]
