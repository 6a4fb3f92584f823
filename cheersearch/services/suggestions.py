import logging
from dataclasses import replace

from cheersearch.config import settings
from cheersearch.models.search import SearchContext, SuggestionItem, TrendingSearch
from cheersearch.services.categories import keywords_for
from cheersearch.services.history import SearchTracker

logger = logging.getLogger("cheersearch.suggestions")

STAGE_LIMIT = 3
EMPTY_QUERY_TRENDING = 5
MIN_CANDIDATES = 3

CATEGORY_BONUS = {"history": 0.3, "trending": 0.2, "popular": 0.1}
MAX_FREQUENCY_BONUS = 0.2

TREND_ICONS = {"rising": "↗️", "declining": "↘️"}
DEFAULT_TREND_ICON = "➡️"

BASE_SUGGESTIONS: list[SuggestionItem] = [
    # Courses
    SuggestionItem(id="s1", term="葡萄酒入門", category="popular", type="course"),
    SuggestionItem(id="s2", term="WSET 認證", category="popular", type="course"),
    SuggestionItem(id="s3", term="品酒技巧", category="popular", type="course"),
    SuggestionItem(id="s4", term="威士忌知識", category="popular", type="course"),
    SuggestionItem(id="s5", term="清酒介紹", category="popular", type="course"),
    # Wine knowledge
    SuggestionItem(id="s6", term="紅酒推薦", category="popular", type="wine"),
    SuggestionItem(id="s7", term="白酒產區", category="popular", type="wine"),
    SuggestionItem(id="s8", term="氣泡酒", category="popular", type="wine"),
    SuggestionItem(id="s9", term="日本清酒", category="popular", type="wine"),
    SuggestionItem(id="s10", term="craft beer", category="popular", type="wine"),
    # General
    SuggestionItem(id="s11", term="如何品酒", category="popular"),
    SuggestionItem(id="s12", term="酒類搭配", category="popular"),
    SuggestionItem(id="s13", term="酒精知識", category="popular"),
    SuggestionItem(id="s14", term="酒杯選擇", category="popular"),
    SuggestionItem(id="s15", term="儲存方法", category="popular"),
]

POPULAR_TERMS = [
    "葡萄酒入門",
    "威士忌知識",
    "清酒介紹",
    "啤酒品鑑",
    "WSET 認證",
    "CMS 認證",
    "品酒技巧",
    "酒類推薦",
]

SEARCH_FILTERS = [
    {"type": "category", "value": "course", "label": "課程"},
    {"type": "category", "value": "wine", "label": "酒類知識"},
    {"type": "category", "value": "article", "label": "文章"},
    {"type": "category", "value": "faq", "label": "常見問題"},
    {"type": "difficulty", "value": "beginner", "label": "入門"},
    {"type": "difficulty", "value": "intermediate", "label": "進階"},
    {"type": "difficulty", "value": "expert", "label": "專家"},
]


def relevance_score(term: str, query: str) -> float:
    """exact 1.0, prefix 0.9, substring 0.7, else 0.5 x fraction of query words found."""
    term_lower = term.lower()
    query_lower = query.lower()

    if term_lower == query_lower:
        return 1.0
    if term_lower.startswith(query_lower):
        return 0.9
    if query_lower in term_lower:
        return 0.7

    words = query_lower.split()
    if not words:
        return 0.0
    matched = [w for w in words if w in term_lower]
    return len(matched) / len(words) * 0.5


def trend_icon(trend: str) -> str:
    return TREND_ICONS.get(trend, DEFAULT_TREND_ICON)


def deduplicate(suggestions: list[SuggestionItem]) -> list[SuggestionItem]:
    """Drop repeated terms (case-insensitive); the first occurrence wins."""
    seen: set[str] = set()
    unique = []
    for suggestion in suggestions:
        key = suggestion.term.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(suggestion)
    return unique


def rank(suggestions: list[SuggestionItem]) -> list[SuggestionItem]:
    """Order by relevance plus category and frequency bonuses."""
    scored = []
    for suggestion in suggestions:
        score = suggestion.score or 0.0
        score += CATEGORY_BONUS.get(suggestion.category, 0.0)
        if suggestion.frequency:
            score += min(suggestion.frequency / 100, MAX_FREQUENCY_BONUS)
        scored.append(replace(suggestion, score=score))
    return sorted(scored, key=lambda s: s.score, reverse=True)


def _trending_item(item: TrendingSearch, item_id: str) -> SuggestionItem:
    return SuggestionItem(
        id=item_id,
        term=item.term,
        category="trending",
        frequency=item.search_count,
        icon=trend_icon(item.trend),
    )


class SuggestionGenerator:
    """Autocomplete suggestions fused from history, trending and a static dictionary."""

    def __init__(
        self,
        tracker: SearchTracker,
        base_suggestions: list[SuggestionItem] | None = None,
        max_suggestions: int = None,
    ):
        self.tracker = tracker
        self.base_suggestions = base_suggestions if base_suggestions is not None else BASE_SUGGESTIONS
        self.max_suggestions = max_suggestions or settings.max_suggestions

    async def generate(self, context: SearchContext) -> list[SuggestionItem]:
        query = context.current_query
        if not query.strip():
            return await self.top_trending()

        suggestions: list[SuggestionItem] = []
        suggestions.extend(await self.history_suggestions(query))
        suggestions.extend(await self.trending_suggestions(query))
        suggestions.extend(self.related_suggestions(query, context.selected_category))

        if len(suggestions) < MIN_CANDIDATES:
            suggestions.extend(self.base_matches(query))

        ranked = rank(deduplicate(suggestions))
        return ranked[: self.max_suggestions]

    async def top_trending(self, limit: int = EMPTY_QUERY_TRENDING) -> list[SuggestionItem]:
        trending = await self.tracker.get_trending(self.tracker.max_trending)
        items = [_trending_item(item, f"trend_{i}") for i, item in enumerate(trending)]
        return deduplicate(items)[:limit]

    async def history_suggestions(self, query: str) -> list[SuggestionItem]:
        query_lower = query.lower()
        candidates = [
            SuggestionItem(
                id=entry.id,
                term=entry.term,
                category="history",
                frequency=entry.frequency,
                score=relevance_score(entry.term, query),
            )
            for entry in await self.tracker.get_history()
            if query_lower in entry.term.lower() and entry.term.lower() != query_lower
        ]
        candidates.sort(key=lambda s: s.score, reverse=True)
        return candidates[:STAGE_LIMIT]

    async def trending_suggestions(self, query: str) -> list[SuggestionItem]:
        query_lower = query.lower()
        trending = await self.tracker.get_trending(limit=20)
        return [
            _trending_item(item, f"trend_{item.term}")
            for item in trending
            if query_lower in item.term.lower()
        ][:STAGE_LIMIT]

    def related_suggestions(
        self, query: str, category: str | None = None
    ) -> list[SuggestionItem]:
        query_lower = query.lower()
        candidates = self.base_suggestions

        if category:
            keywords = keywords_for(category)
            candidates = [
                item
                for item in candidates
                if item.type == category or any(k in item.term.lower() for k in keywords)
            ]

        related = [
            replace(item, score=relevance_score(item.term, query))
            for item in candidates
            if query_lower in item.term.lower() and item.term.lower() != query_lower
        ]
        related.sort(key=lambda s: s.score, reverse=True)
        return related[:STAGE_LIMIT]

    def base_matches(self, query: str) -> list[SuggestionItem]:
        query_lower = query.lower()
        return [
            replace(item)
            for item in self.base_suggestions
            if query_lower in item.term.lower()
        ][:STAGE_LIMIT]

    async def autocomplete(self, query: str, limit: int = 5) -> list[str]:
        """Plain-string completions from recent history and popular terms.

        Prefix matches come first, then shorter terms.
        """
        if not query.strip():
            return []
        query_lower = query.lower()

        terms = list(dict.fromkeys([*await self.tracker.recent_queries(20), *POPULAR_TERMS]))
        matches = [t for t in terms if query_lower in t.lower()]
        matches.sort(key=lambda t: (0 if t.lower().startswith(query_lower) else 1, len(t)))
        return matches[:limit]


def available_filters() -> list[dict]:
    return [dict(f) for f in SEARCH_FILTERS]
