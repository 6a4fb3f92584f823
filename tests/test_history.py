"""Tests for search history, trending counts and search-context tracking."""

import json

import pytest

from cheersearch.models.search import SearchContext
from cheersearch.services.history import (
    HISTORY_KEY,
    TRENDING_KEY,
    SearchContextTracker,
    SearchTracker,
)
from cheersearch.storage import MemoryStore


@pytest.mark.asyncio
async def test_repeat_term_increments_frequency(tracker):
    await tracker.record_search("wine")
    await tracker.record_search("wine")

    history = await tracker.get_history()
    assert len(history) == 1
    assert history[0].term == "wine"
    assert history[0].frequency == 2
    assert history[0].category == "history"


@pytest.mark.asyncio
async def test_terms_are_case_sensitive(tracker):
    await tracker.record_search("Wine")
    await tracker.record_search("wine")
    assert [e.term for e in await tracker.get_history()] == ["wine", "Wine"]


@pytest.mark.asyncio
async def test_blank_terms_ignored(tracker):
    await tracker.record_search("")
    await tracker.record_search("   ")
    assert await tracker.get_history() == []
    assert await tracker.get_trending() == []


@pytest.mark.asyncio
async def test_touched_entry_moves_to_front(tracker):
    for term in ["merlot", "syrah", "riesling"]:
        await tracker.record_search(term)
    await tracker.record_search("merlot")

    history = await tracker.get_history()
    assert [e.term for e in history] == ["merlot", "riesling", "syrah"]
    assert history[0].timestamp >= history[1].timestamp


@pytest.mark.asyncio
async def test_history_cap_keeps_most_recent(store):
    tracker = SearchTracker(store, max_history=5, max_trending=50)
    for i in range(8):
        await tracker.record_search(f"term {i}")
    await tracker.record_search("term 3")

    terms = [e.term for e in await tracker.get_history()]
    assert terms == ["term 3", "term 7", "term 6", "term 5", "term 4"]


@pytest.mark.asyncio
async def test_trending_counts_sorted_and_capped(store):
    tracker = SearchTracker(store, max_history=100, max_trending=3)
    for term in ["sake", "beer", "beer", "wine", "wine", "wine", "cider"]:
        await tracker.record_search(term)

    trending = await tracker.get_trending(limit=10)
    assert [(t.term, t.search_count) for t in trending] == [
        ("wine", 3),
        ("beer", 2),
        ("sake", 1),
    ]
    assert len(trending) <= 3


@pytest.mark.asyncio
async def test_new_trending_entry_is_rising_and_categorized(tracker):
    await tracker.record_search("WSET 認證")
    await tracker.record_search("Japanese sake")
    await tracker.record_search("cocktails")

    by_term = {t.term: t for t in await tracker.get_trending()}
    assert by_term["WSET 認證"].category == "certification"
    assert by_term["Japanese sake"].category == "sake"
    assert by_term["cocktails"].category == "general"
    assert all(t.trend == "rising" for t in by_term.values())


@pytest.mark.asyncio
async def test_persisted_as_versioned_envelope(store, tracker):
    await tracker.record_search("wine")
    envelope = json.loads(store.data[HISTORY_KEY])
    assert envelope["version"] == 1
    assert isinstance(envelope["timestamp"], int)
    assert envelope["payload"][0]["term"] == "wine"
    assert TRENDING_KEY in store.data


@pytest.mark.asyncio
async def test_corrupt_store_degrades_to_empty(store, tracker):
    store.data[HISTORY_KEY] = "{not json"
    store.data[TRENDING_KEY] = json.dumps({"version": 99, "payload": []})
    assert await tracker.get_history() == []
    assert await tracker.get_trending() == []

    await tracker.record_search("wine")
    assert [e.term for e in await tracker.get_history()] == ["wine"]


@pytest.mark.asyncio
async def test_recent_queries_and_clear(tracker):
    for term in ["a1", "b2", "c3"]:
        await tracker.record_search(term)
    assert await tracker.recent_queries(2) == ["c3", "b2"]

    await tracker.clear()
    assert await tracker.get_history() == []
    assert await tracker.get_trending() == []


class FailingStore(MemoryStore):
    async def set(self, key, value):
        raise ConnectionError("store offline")


@pytest.mark.asyncio
async def test_write_failures_are_not_raised():
    tracker = SearchTracker(FailingStore())
    await tracker.record_search("wine")
    assert await tracker.get_history() == []


@pytest.mark.asyncio
async def test_context_history_rolls(store):
    contexts = SearchContextTracker(store, max_entries=3)
    for q in ["w", "wi", "win", "wine"]:
        await contexts.update_context(SearchContext(current_query=q, cursor_position=len(q)))
    await contexts.update_context(SearchContext(current_query="win", previous_query="wine"))

    history = await contexts.get_context_history()
    assert [c["current_query"] for c in history] == ["win", "wine", "wi"]

    recent = await contexts.get_recent_context()
    assert recent == SearchContext(current_query="win", previous_query="wine")

    await contexts.clear()
    assert await contexts.get_recent_context() is None
