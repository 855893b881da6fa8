"""Protocol for result ranking."""

from typing import Protocol

from cacaw_search.data import ImageResult, Query


class ResultRanker(Protocol):
    """Interface for ordering merged search results."""

    def rank(self, results: list[ImageResult], query: Query) -> list[ImageResult]:
        """Order results from best to worst match.

        Args:
            results: Deduplicated results from every adapter.
            query: The query the results answer.

        Returns:
            A new list; the input is left untouched.
        """
        ...
