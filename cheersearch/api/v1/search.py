from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from cheersearch.api.deps import get_orchestrator
from cheersearch.config import settings
from cheersearch.models.search import RESULT_TYPES, SearchOptions
from cheersearch.services.orchestrator import SearchOrchestrator
from cheersearch.services.suggestions import available_filters

router = APIRouter()


class RecordSearchRequest(BaseModel):
    term: str = Field(..., min_length=1, max_length=500)


@router.get("/search")
async def search(
    q: str = Query("", max_length=500, description="Search query"),
    types: list[str] | None = Query(None, description="Restrict to result types"),
    limit: int = Query(10, ge=1, le=settings.max_search_results),
    namespace: str = Query(settings.default_namespace),
    min_score: float = Query(settings.min_vector_score, ge=0, le=1),
    highlight: bool = Query(False, description="Collect matched query terms"),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Hybrid semantic + keyword search.

    Results are ranked by 0.7 x vector similarity + 0.3 x keyword match.
    An empty query returns no results without calling any provider.
    """
    valid_types = [t for t in types or [] if t in RESULT_TYPES] or None
    response = await orchestrator.search(
        SearchOptions(
            query=q,
            types=valid_types,
            limit=limit,
            namespace=namespace,
            min_score=min_score,
            highlight_terms=highlight,
        )
    )
    return asdict(response)


@router.get("/search/filters")
async def search_filters():
    return {"filters": available_filters()}


@router.get("/search/history")
async def get_history(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    history = await orchestrator.history()
    return {"history": [asdict(entry) for entry in history]}


@router.post("/search/history", status_code=204)
async def record_search(
    body: RecordSearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Record a committed search term (history + trending)."""
    await orchestrator.record_search(body.term)


@router.delete("/search/history", status_code=204)
async def clear_history(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    await orchestrator.clear_history()
