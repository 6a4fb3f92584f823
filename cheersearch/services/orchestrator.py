import logging

from cheersearch.models.search import (
    SearchContext,
    SearchHistoryEntry,
    SearchOptions,
    SearchResponse,
    SuggestionItem,
    TrendingSearch,
)
from cheersearch.services.history import SearchContextTracker, SearchTracker
from cheersearch.services.search.hybrid import HybridSearchEngine
from cheersearch.services.suggestions import SuggestionGenerator

logger = logging.getLogger("cheersearch.orchestrator")


class SearchOrchestrator:
    """Entry point for search and autocomplete.

    A search runs strictly in sequence: embedding and vector query (inside
    the engine), ranking, suggestion generation, then the history update.
    """

    def __init__(
        self,
        engine: HybridSearchEngine,
        tracker: SearchTracker,
        suggestions: SuggestionGenerator,
        contexts: SearchContextTracker,
    ):
        self.engine = engine
        self.tracker = tracker
        self.suggestions = suggestions
        self.contexts = contexts

    async def search(self, options: SearchOptions) -> SearchResponse:
        response = await self.engine.search(options)
        if not options.query.strip():
            return response

        response.stats.suggestions = await self.suggestions.generate(
            SearchContext(current_query=options.query)
        )
        await self.tracker.record_search(options.query)
        return response

    async def get_suggestions(self, context: SearchContext) -> list[SuggestionItem]:
        if context.current_query.strip():
            await self.contexts.update_context(context)
        return await self.suggestions.generate(context)

    async def record_search(self, term: str) -> None:
        await self.tracker.record_search(term)

    async def autocomplete(self, query: str, limit: int = 5) -> list[str]:
        return await self.suggestions.autocomplete(query, limit)

    async def history(self) -> list[SearchHistoryEntry]:
        return await self.tracker.get_history()

    async def trending(self, limit: int = 10) -> list[TrendingSearch]:
        return await self.tracker.get_trending(limit)

    async def clear_history(self) -> None:
        await self.tracker.clear()
        await self.contexts.clear()
