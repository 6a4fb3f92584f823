from fastapi import HTTPException, Request, status

from cheersearch.services.embedding import EmbeddingClient
from cheersearch.services.orchestrator import SearchOrchestrator
from cheersearch.services.vector_store import PineconeVectorStore


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} is not initialized",
        )
    return value


def get_orchestrator(request: Request) -> SearchOrchestrator:
    return _state(request, "orchestrator")


def get_vector_store(request: Request) -> PineconeVectorStore:
    return _state(request, "vector_store")


def get_embedder(request: Request) -> EmbeddingClient:
    return _state(request, "embedder")
