from cheersearch.models.search import (
    IndexStats,
    SearchContext,
    SearchHistoryEntry,
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchStats,
    SuggestionItem,
    TrendingSearch,
    VectorMatch,
    VectorRecord,
)

__all__ = [
    "SearchResult",
    "SearchStats",
    "SearchResponse",
    "SearchOptions",
    "SuggestionItem",
    "SearchHistoryEntry",
    "TrendingSearch",
    "SearchContext",
    "VectorMatch",
    "VectorRecord",
    "IndexStats",
]
