"""Data models for cacaw_search."""

from cacaw_search.data.models import (
    AggregatedResponse,
    ColorKind,
    ImageKind,
    ImageResult,
    License,
    Query,
    SafetyLevel,
    SearchOptions,
    SearchResponse,
    UsageRights,
)

__all__ = [
    "AggregatedResponse",
    "ColorKind",
    "ImageKind",
    "ImageResult",
    "License",
    "Query",
    "SafetyLevel",
    "SearchOptions",
    "SearchResponse",
    "UsageRights",
]
