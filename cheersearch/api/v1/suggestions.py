from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from cheersearch.api.deps import get_orchestrator
from cheersearch.models.search import SearchContext
from cheersearch.services.orchestrator import SearchOrchestrator

router = APIRouter()


@router.get("/suggestions")
async def suggestions(
    q: str = Query("", max_length=100),
    previous: str | None = Query(None, max_length=100),
    cursor: int | None = Query(None, ge=0),
    category: str | None = Query(None, max_length=50),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Suggestions for the current input, called on each keystroke.

    An empty query returns the top trending terms.
    """
    context = SearchContext(
        current_query=q,
        previous_query=previous,
        cursor_position=cursor if cursor is not None else len(q),
        selected_category=category,
    )
    items = await orchestrator.get_suggestions(context)
    return {"query": q, "suggestions": [asdict(item) for item in items]}


@router.get("/autocomplete")
async def autocomplete(
    prefix: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(5, ge=1, le=20),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    completions = await orchestrator.autocomplete(prefix, limit)
    return {"prefix": prefix, "suggestions": completions}


@router.get("/trending")
async def trending(
    limit: int = Query(10, ge=1, le=50),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    items = await orchestrator.trending(limit)
    return {"trending": [asdict(item) for item in items]}
