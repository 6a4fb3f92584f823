"""End-to-end search flow over fake adapters and an in-memory store."""

import pytest

from cheersearch.errors import VectorStoreError
from cheersearch.models.search import SearchContext, SearchOptions
from cheersearch.services.orchestrator import SearchOrchestrator
from cheersearch.services.search.hybrid import HybridSearchEngine
from cheersearch.services.suggestions import SuggestionGenerator
from tests.conftest import FakeEmbedder, FakeVectorStore, make_match


def make_orchestrator(tracker, context_tracker, matches=None, vector=(0.1, 0.2), error=None):
    engine = HybridSearchEngine(
        FakeEmbedder(vector),
        FakeVectorStore(matches, error=error),
        vector_weight=0.7,
        keyword_weight=0.3,
        excerpt_length=150,
    )
    return SearchOrchestrator(
        engine, tracker, SuggestionGenerator(tracker, max_suggestions=10), context_tracker
    )


@pytest.mark.asyncio
async def test_search_ranks_suggests_and_records(tracker, context_tracker, sample_matches):
    orchestrator = make_orchestrator(tracker, context_tracker, sample_matches)
    await tracker.record_search("red wine regions")

    response = await orchestrator.search(SearchOptions(query="red wine"))

    assert response.results[0].id == "m1"
    assert [s.term for s in response.stats.suggestions] == ["red wine regions"]
    history = await tracker.get_history()
    assert history[0].term == "red wine"
    assert history[0].frequency == 1


@pytest.mark.asyncio
async def test_blank_search_touches_nothing(tracker, context_tracker, sample_matches):
    orchestrator = make_orchestrator(tracker, context_tracker, sample_matches)
    response = await orchestrator.search(SearchOptions(query="  "))

    assert response.results == []
    assert response.stats.suggestions == []
    assert await tracker.get_history() == []


@pytest.mark.asyncio
async def test_search_without_network_still_records(tracker, context_tracker):
    orchestrator = make_orchestrator(tracker, context_tracker, vector=None)

    response = await orchestrator.search(SearchOptions(query="wine"))
    assert response.results == []
    assert response.stats.total_results == 0

    response = await orchestrator.search(SearchOptions(query="wine"))
    history = await tracker.get_history()
    assert history[0].frequency == 2
    trending = await tracker.get_trending()
    assert trending[0].search_count == 2


@pytest.mark.asyncio
async def test_vector_store_failure_degrades(tracker, context_tracker):
    orchestrator = make_orchestrator(
        tracker,
        context_tracker,
        [make_match("m1", 0.9, "wine")],
        error=VectorStoreError("query", 503, "unavailable"),
    )
    response = await orchestrator.search(SearchOptions(query="wine"))
    assert response.results == []
    assert [e.term for e in await tracker.get_history()] == ["wine"]


@pytest.mark.asyncio
async def test_get_suggestions_updates_context(tracker, context_tracker):
    orchestrator = make_orchestrator(tracker, context_tracker)

    suggestions = await orchestrator.get_suggestions(
        SearchContext(current_query="清酒", cursor_position=2)
    )

    assert "日本清酒" in [s.term for s in suggestions]
    recent = await context_tracker.get_recent_context()
    assert recent.current_query == "清酒"
    assert recent.cursor_position == 2


@pytest.mark.asyncio
async def test_empty_suggestions_request_leaves_context(tracker, context_tracker):
    orchestrator = make_orchestrator(tracker, context_tracker)
    await orchestrator.get_suggestions(SearchContext(current_query=""))
    assert await context_tracker.get_recent_context() is None


@pytest.mark.asyncio
async def test_clear_history_clears_everything(tracker, context_tracker):
    orchestrator = make_orchestrator(tracker, context_tracker)
    await orchestrator.record_search("sake")
    await orchestrator.get_suggestions(SearchContext(current_query="sa"))

    await orchestrator.clear_history()

    assert await orchestrator.history() == []
    assert await orchestrator.trending() == []
    assert await context_tracker.get_recent_context() is None


@pytest.mark.asyncio
async def test_autocomplete_delegates(tracker, context_tracker):
    orchestrator = make_orchestrator(tracker, context_tracker)
    assert await orchestrator.autocomplete("威士忌") == ["威士忌知識"]
