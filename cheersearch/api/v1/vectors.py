import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from cheersearch.api.deps import get_embedder, get_vector_store
from cheersearch.errors import MetadataValidationError, VectorStoreError
from cheersearch.models.search import VectorRecord
from cheersearch.services.embedding import EmbeddingClient
from cheersearch.services.vector_store import PineconeVectorStore

logger = logging.getLogger("cheersearch.api.vectors")

router = APIRouter()


class VectorIn(BaseModel):
    id: str = Field(..., min_length=1)
    values: list[float] | None = None
    text: str | None = Field(None, description="Embedded when values are omitted")
    metadata: dict[str, Any] | None = None


class UpsertRequest(BaseModel):
    vectors: list[VectorIn] = Field(..., min_length=1, max_length=100)
    namespace: str | None = None


class DeleteRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1, max_length=1000)
    namespace: str | None = None


def _store_error(e: VectorStoreError) -> HTTPException:
    logger.error("Vector store error: %s", e)
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": "Vector store request failed", "status": e.status},
    )


@router.post("/vectors/upsert")
async def upsert_vectors(
    body: UpsertRequest,
    store: PineconeVectorStore = Depends(get_vector_store),
    embedder: EmbeddingClient = Depends(get_embedder),
):
    """Upsert vectors. Items given as text are embedded first."""
    records = []
    for item in body.vectors:
        values = item.values
        if not values:
            if not item.text:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=f"Vector {item.id} needs either values or text",
                )
            values = await embedder.embed(item.text)
            if values is None:
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Embedding provider unavailable",
                )
        records.append(VectorRecord(id=item.id, values=values, metadata=item.metadata))

    try:
        count = await store.upsert(records, body.namespace)
    except MetadataValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except VectorStoreError as e:
        raise _store_error(e)
    return {"upserted_count": count}


@router.post("/vectors/delete")
async def delete_vectors(
    body: DeleteRequest,
    store: PineconeVectorStore = Depends(get_vector_store),
):
    try:
        await store.delete(body.ids, body.namespace)
    except VectorStoreError as e:
        raise _store_error(e)
    return {"deleted": len(body.ids)}


@router.get("/vectors/stats")
async def vector_stats(store: PineconeVectorStore = Depends(get_vector_store)):
    try:
        stats = await store.describe_index_stats()
    except VectorStoreError as e:
        raise _store_error(e)
    return asdict(stats)
