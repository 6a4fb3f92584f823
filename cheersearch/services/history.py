import logging
import secrets
import time
from dataclasses import asdict

from cheersearch.config import settings
from cheersearch.models.search import SearchContext, SearchHistoryEntry, TrendingSearch
from cheersearch.services.categories import categorize_term
from cheersearch.storage import KeyValueStore, delete_payload, load_payload, save_payload

logger = logging.getLogger("cheersearch.history")

HISTORY_KEY = "search_history"
TRENDING_KEY = "trending_searches"
CONTEXT_KEY = "search_context"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _history_from_payload(payload: list) -> list[SearchHistoryEntry]:
    entries = []
    for item in payload:
        try:
            entries.append(
                SearchHistoryEntry(
                    id=str(item.get("id") or f"hist_{item['term']}"),
                    term=str(item["term"]),
                    frequency=int(item.get("frequency") or 1),
                    timestamp=int(item.get("timestamp") or 0),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed history entry: %r", item)
    return entries


def _trending_from_payload(payload: list) -> list[TrendingSearch]:
    entries = []
    for item in payload:
        try:
            entries.append(
                TrendingSearch(
                    term=str(item["term"]),
                    search_count=int(item.get("search_count") or 0),
                    trend=item.get("trend") or "stable",
                    category=item.get("category") or categorize_term(str(item["term"])),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed trending entry: %r", item)
    return entries


class SearchTracker:
    """Per-term search history and global trending counts.

    History keeps the most recently touched terms first and is truncated
    from the tail; trending is kept sorted by count and truncated to the
    top entries. Updates are read-modify-write with a single writer assumed.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_history: int = None,
        max_trending: int = None,
    ):
        self.store = store
        self.max_history = max_history or settings.max_history
        self.max_trending = max_trending or settings.max_trending

    async def get_history(self) -> list[SearchHistoryEntry]:
        payload = await load_payload(self.store, HISTORY_KEY, [])
        if not isinstance(payload, list):
            return []
        return _history_from_payload(payload)

    async def get_trending(self, limit: int = 10) -> list[TrendingSearch]:
        payload = await load_payload(self.store, TRENDING_KEY, [])
        if not isinstance(payload, list):
            return []
        return _trending_from_payload(payload)[:limit]

    async def recent_queries(self, limit: int = 10) -> list[str]:
        history = await self.get_history()
        return [entry.term for entry in history[:limit]]

    async def record_search(self, term: str) -> None:
        if not term or not term.strip():
            return
        await self._update_history(term)
        await self._update_trending(term)

    async def _update_history(self, term: str) -> None:
        history = await self.get_history()
        now = _now_ms()

        existing = next((e for e in history if e.term == term), None)
        if existing is not None:
            history.remove(existing)
            existing.frequency += 1
            existing.timestamp = now
            entry = existing
        else:
            entry = SearchHistoryEntry(
                id=f"hist_{now}_{secrets.token_hex(4)}",
                term=term,
                frequency=1,
                timestamp=now,
            )
        history.insert(0, entry)
        del history[self.max_history :]

        await save_payload(self.store, HISTORY_KEY, [asdict(e) for e in history])

    async def _update_trending(self, term: str) -> None:
        trending = await self.get_trending(limit=self.max_trending)

        existing = next((t for t in trending if t.term == term), None)
        if existing is not None:
            existing.search_count += 1
        else:
            trending.append(
                TrendingSearch(
                    term=term,
                    search_count=1,
                    trend="rising",
                    category=categorize_term(term),
                )
            )

        trending.sort(key=lambda t: t.search_count, reverse=True)
        del trending[self.max_trending :]

        await save_payload(self.store, TRENDING_KEY, [asdict(t) for t in trending])

    async def clear(self) -> None:
        await delete_payload(self.store, HISTORY_KEY)
        await delete_payload(self.store, TRENDING_KEY)
        logger.info("Cleared search history and trending searches")


class SearchContextTracker:
    """Short rolling history of search contexts, newest first."""

    def __init__(self, store: KeyValueStore, max_entries: int = None):
        self.store = store
        self.max_entries = max_entries or settings.max_context_history

    async def get_context_history(self) -> list[dict]:
        payload = await load_payload(self.store, CONTEXT_KEY, [])
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def get_recent_context(self) -> SearchContext | None:
        history = await self.get_context_history()
        if not history:
            return None
        item = dict(history[0])
        item.pop("timestamp", None)
        try:
            return SearchContext(**item)
        except TypeError:
            logger.warning("Malformed search context: %r", history[0])
            return None

    async def update_context(self, context: SearchContext) -> None:
        history = [
            item
            for item in await self.get_context_history()
            if item.get("current_query") != context.current_query
        ]
        history.insert(0, {**asdict(context), "timestamp": _now_ms()})
        del history[self.max_entries :]
        await save_payload(self.store, CONTEXT_KEY, history)

    async def clear(self) -> None:
        await delete_payload(self.store, CONTEXT_KEY)
