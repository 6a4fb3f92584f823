from dataclasses import dataclass, field
from typing import Any, Literal

ResultType = Literal["course", "wine", "article", "faq", "game"]
SuggestionCategory = Literal["history", "popular", "trending", "related"]
Trend = Literal["rising", "stable", "declining"]

RESULT_TYPES: tuple[str, ...] = ("course", "wine", "article", "faq", "game")


@dataclass
class SearchResult:
    id: str
    title: str
    content: str
    type: ResultType
    score: float  # fused score, 0-1
    excerpt: str
    highlight: list[str] | None = None
    url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    vector_score: float = 0.0
    lexical_score: float = 0.0


@dataclass
class SuggestionItem:
    id: str
    term: str
    category: SuggestionCategory
    frequency: int | None = None
    score: float | None = None
    icon: str | None = None
    type: str | None = None


@dataclass
class SearchStats:
    total_results: int
    search_time_ms: float
    query: str
    suggestions: list[SuggestionItem] = field(default_factory=list)


@dataclass
class SearchResponse:
    results: list[SearchResult]
    stats: SearchStats


@dataclass
class SearchOptions:
    query: str
    types: list[str] | None = None
    limit: int = 10
    namespace: str = "knowledge"
    min_score: float = 0.7
    include_metadata: bool = True
    highlight_terms: bool = False
    filter: dict[str, Any] | None = None


@dataclass
class SearchHistoryEntry:
    id: str
    term: str
    frequency: int
    timestamp: int  # epoch ms, last seen
    category: str = "history"


@dataclass
class TrendingSearch:
    term: str
    search_count: int
    trend: Trend
    category: str


@dataclass
class SearchContext:
    current_query: str
    previous_query: str | None = None
    cursor_position: int = 0
    selected_category: str | None = None


@dataclass
class VectorMatch:
    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorRecord:
    id: str
    values: list[float]
    metadata: dict[str, Any] | None = None


@dataclass
class IndexStats:
    namespaces: dict[str, int]
    dimension: int
    index_fullness: float
    total_vector_count: int
