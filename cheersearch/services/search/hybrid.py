import asyncio
import logging
import time
from dataclasses import dataclass

import httpx

from cheersearch.config import settings
from cheersearch.errors import CheerSearchError
from cheersearch.models.search import (
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchStats,
    VectorMatch,
)
from cheersearch.services.embedding import EmbeddingClient
from cheersearch.services.search.ranking import (
    determine_result_type,
    fuse_scores,
    generate_excerpt,
    generate_highlights,
    keyword_score,
    result_url,
)
from cheersearch.services.vector_store import PineconeVectorStore

logger = logging.getLogger("cheersearch.search.hybrid")

UNTITLED = "Untitled"


@dataclass
class _Candidate:
    match: VectorMatch
    title: str
    content: str
    type: str
    lexical_score: float = 0.0
    fused_score: float = 0.0


def _to_candidate(match: VectorMatch) -> _Candidate:
    metadata = match.metadata or {}
    return _Candidate(
        match=match,
        title=str(metadata.get("title") or metadata.get("name") or UNTITLED),
        content=str(metadata.get("content") or metadata.get("text") or ""),
        type=determine_result_type(metadata),
    )


class HybridSearchEngine:
    """Semantic retrieval re-ranked with a lexical match score.

    fused = vector_weight * vector_score + keyword_weight * lexical_score

    Candidates come from a single vector query for twice the requested
    limit; the lexical score only re-orders them. Without a query embedding
    the semantic stage is empty and so is the result set.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        vector_store: PineconeVectorStore,
        vector_weight: float = None,
        keyword_weight: float = None,
        excerpt_length: int = None,
    ):
        self.embedder = embedder
        self.vector_store = vector_store
        self.vector_weight = vector_weight if vector_weight is not None else settings.vector_weight
        self.keyword_weight = keyword_weight if keyword_weight is not None else settings.keyword_weight
        self.excerpt_length = excerpt_length or settings.excerpt_length

    async def search(self, options: SearchOptions) -> SearchResponse:
        start_time = time.perf_counter()
        query = options.query

        if not query.strip():
            return SearchResponse(
                results=[],
                stats=SearchStats(total_results=0, search_time_ms=0, query=query),
            )

        try:
            candidates = await self._vector_candidates(options)
        except (CheerSearchError, httpx.HTTPError, asyncio.TimeoutError, KeyError, ValueError) as e:
            logger.error("Search failed for query=%r: %s", query, e)
            candidates = []

        if options.types:
            candidates = [c for c in candidates if c.type in options.types]

        for candidate in candidates:
            candidate.lexical_score = keyword_score(candidate.content, query)
            candidate.fused_score = fuse_scores(
                candidate.match.score,
                candidate.lexical_score,
                self.vector_weight,
                self.keyword_weight,
            )

        # sorted() is stable: ties keep the vector store's order
        ranked = sorted(candidates, key=lambda c: c.fused_score, reverse=True)
        results = [self._to_result(c, options) for c in ranked[: options.limit]]

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Hybrid search: query=%r candidates=%d returned=%d latency_ms=%.1f",
            query, len(candidates), len(results), latency_ms,
        )
        return SearchResponse(
            results=results,
            stats=SearchStats(
                total_results=len(results),
                search_time_ms=round(latency_ms, 1),
                query=query,
            ),
        )

    async def _vector_candidates(self, options: SearchOptions) -> list[_Candidate]:
        vector = await self.embedder.embed(options.query)
        if not vector:
            logger.info("No query embedding available, semantic stage is empty")
            return []

        matches = await self.vector_store.query(
            vector,
            top_k=options.limit * 2,
            namespace=options.namespace,
            filter=options.filter,
            include_metadata=options.include_metadata,
        )
        return [_to_candidate(m) for m in matches if m.score >= options.min_score]

    def _to_result(self, candidate: _Candidate, options: SearchOptions) -> SearchResult:
        metadata = candidate.match.metadata or {}
        result = SearchResult(
            id=candidate.match.id,
            title=candidate.title,
            content=candidate.content,
            type=candidate.type,
            score=candidate.fused_score,
            excerpt=generate_excerpt(candidate.content, self.excerpt_length),
            url=result_url(metadata),
            metadata=metadata if options.include_metadata else {},
            vector_score=candidate.match.score,
            lexical_score=candidate.lexical_score,
        )
        if options.highlight_terms:
            result.highlight = generate_highlights(candidate.content, options.query)
        return result
