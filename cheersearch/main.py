import logging
from contextlib import asynccontextmanager

import httpx
import redis.asyncio as aioredis
from fastapi import FastAPI
from redis.exceptions import RedisError

from cheersearch.config import settings
from cheersearch.middleware.request_logging import RequestLoggingMiddleware
from cheersearch.services.embedding import EmbeddingClient
from cheersearch.services.history import SearchContextTracker, SearchTracker
from cheersearch.services.http.resilient import build_http_client
from cheersearch.services.orchestrator import SearchOrchestrator
from cheersearch.services.search.hybrid import HybridSearchEngine
from cheersearch.services.suggestions import SuggestionGenerator
from cheersearch.services.vector_store import PineconeVectorStore
from cheersearch.storage import KeyValueStore, RedisStore

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
)


def build_orchestrator(
    http: httpx.AsyncClient, store: KeyValueStore
) -> tuple[SearchOrchestrator, EmbeddingClient, PineconeVectorStore]:
    """Wire the retrieval engine around a shared HTTP client and store."""
    embedder = EmbeddingClient(http)
    vector_store = PineconeVectorStore(http)
    tracker = SearchTracker(store)
    orchestrator = SearchOrchestrator(
        engine=HybridSearchEngine(embedder, vector_store),
        tracker=tracker,
        suggestions=SuggestionGenerator(tracker),
        contexts=SearchContextTracker(store),
    )
    return orchestrator, embedder, vector_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    app.state.http = build_http_client()
    store = RedisStore(app.state.redis, prefix=settings.storage_key_prefix)
    app.state.orchestrator, app.state.embedder, app.state.vector_store = build_orchestrator(
        app.state.http, store
    )
    yield
    await app.state.http.aclose()
    await app.state.redis.aclose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Hybrid semantic + keyword search with history-aware suggestions.",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# --- Routers ---
from cheersearch.api.v1 import search, suggestions, vectors  # noqa: E402

app.include_router(search.router, prefix="/api/v1", tags=["Search"])
app.include_router(suggestions.router, prefix="/api/v1", tags=["Suggestions"])
app.include_router(vectors.router, prefix="/api/v1", tags=["Vectors"])


@app.get("/api/v1/health", tags=["Health"])
async def health_check():
    redis_ok = False
    redis = getattr(app.state, "redis", None)
    if redis is not None:
        try:
            redis_ok = bool(await redis.ping())
        except (RedisError, OSError):
            redis_ok = False

    vector_ok, vector_message = False, "not initialized"
    vector_store = getattr(app.state, "vector_store", None)
    if vector_store is not None:
        vector_ok, vector_message = await vector_store.test_connection()

    return {
        "status": "healthy" if redis_ok and vector_ok else "degraded",
        "version": settings.app_version,
        "services": {
            "redis": "up" if redis_ok else "down",
            "vector_store": "up" if vector_ok else "down",
        },
        "vector_store_message": vector_message,
    }
