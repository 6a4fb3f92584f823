import asyncio
import json
import logging
import numbers
from typing import Any

import httpx

from cheersearch.config import settings
from cheersearch.errors import MetadataValidationError, VectorStoreError
from cheersearch.models.search import IndexStats, VectorMatch, VectorRecord
from cheersearch.services.http.resilient import RetryPolicy, resilient_request

logger = logging.getLogger("cheersearch.vector_store")

# Pinecone limits per vector: 40KB of metadata, at most 100 keys
METADATA_MAX_BYTES = 40_960
METADATA_MAX_KEYS = 100


def metadata_size(metadata: dict[str, Any]) -> int:
    """Size in bytes of the compact UTF-8 JSON encoding of ``metadata``."""
    return len(
        json.dumps(metadata, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    )


def validate_metadata(metadata: dict[str, Any] | None) -> None:
    """Raise MetadataValidationError if metadata breaks the store's limits."""
    if not metadata:
        return
    if len(metadata) > METADATA_MAX_KEYS:
        raise MetadataValidationError(
            f"Metadata key count {len(metadata)} exceeds limit {METADATA_MAX_KEYS}"
        )
    size = metadata_size(metadata)
    if size > METADATA_MAX_BYTES:
        raise MetadataValidationError(
            f"Metadata size {size} bytes exceeds limit {METADATA_MAX_BYTES}"
        )


def _parse_matches(data: Any) -> list[VectorMatch]:
    """Matches from a query response. Raises VectorStoreError on an unexpected shape."""
    if not isinstance(data, dict):
        raise VectorStoreError("query", body=f"malformed response body: {type(data).__name__}")
    raw_matches = data.get("matches") or []
    if not isinstance(raw_matches, list):
        raise VectorStoreError("query", body="malformed response: matches is not a list")

    matches = []
    for raw in raw_matches:
        if not isinstance(raw, dict) or raw.get("id") is None:
            raise VectorStoreError("query", body=f"malformed match: {raw!r:.200}")
        score = raw.get("score", 0.0)
        if not isinstance(score, numbers.Real) or isinstance(score, bool):
            raise VectorStoreError("query", body=f"match {raw['id']} has score {score!r}")
        metadata = raw.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise VectorStoreError("query", body=f"match {raw['id']} has non-object metadata")
        matches.append(VectorMatch(id=str(raw["id"]), score=float(score), metadata=metadata))
    return matches


class PineconeVectorStore:
    """Query/upsert/delete against a Pinecone index over its REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = None,
        api_key: str = None,
        api_version: str = None,
        policy: RetryPolicy | None = None,
    ):
        self.client = client
        base_url = base_url if base_url is not None else settings.pinecone_api_url
        self.base_url = base_url.strip().rstrip("/")
        self.api_key = api_key if api_key is not None else settings.pinecone_api_key
        self.api_version = api_version or settings.pinecone_api_version
        self.policy = policy or RetryPolicy.from_settings()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def _post(self, operation: str, path: str, body: dict) -> dict:
        if not self.configured:
            raise VectorStoreError(operation, body="vector store URL or API key not set")

        response = await resilient_request(
            self.client,
            "POST",
            f"{self.base_url}{path}",
            self.policy,
            headers={
                "Api-Key": self.api_key,
                "X-Pinecone-Api-Version": self.api_version,
            },
            json=body,
        )
        if not response.is_success:
            raise VectorStoreError(operation, response.status_code, response.text)
        if not response.content:
            return {}
        return response.json()

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        namespace: str | None = None,
        filter: dict[str, Any] | None = None,
        include_metadata: bool = True,
    ) -> list[VectorMatch]:
        body: dict[str, Any] = {
            "vector": vector,
            "topK": top_k,
            "includeMetadata": include_metadata,
        }
        if namespace:
            body["namespace"] = namespace
        if filter:
            body["filter"] = filter

        data = await self._post("query", "/query", body)
        return _parse_matches(data)

    async def upsert(self, vectors: list[VectorRecord], namespace: str | None = None) -> int:
        """Upsert vectors. Metadata is validated before anything is sent."""
        if not vectors:
            return 0
        for record in vectors:
            validate_metadata(record.metadata)

        payload = []
        for record in vectors:
            item: dict[str, Any] = {"id": record.id, "values": record.values}
            if record.metadata:
                item["metadata"] = record.metadata
            payload.append(item)

        body: dict[str, Any] = {"vectors": payload}
        if namespace:
            body["namespace"] = namespace

        data = await self._post("upsert", "/vectors/upsert", body)
        count = int(data.get("upsertedCount", len(vectors)))
        logger.info("Upserted %d vectors into namespace=%s", count, namespace or "")
        return count

    async def delete(self, ids: list[str], namespace: str | None = None) -> None:
        body: dict[str, Any] = {"ids": ids}
        if namespace:
            body["namespace"] = namespace
        await self._post("delete", "/vectors/delete", body)
        logger.info("Deleted %d vectors from namespace=%s", len(ids), namespace or "")

    async def describe_index_stats(self) -> IndexStats:
        data = await self._post("stats", "/describe_index_stats", {})
        namespaces = {
            name: int(ns.get("vectorCount", 0))
            for name, ns in (data.get("namespaces") or {}).items()
        }
        return IndexStats(
            namespaces=namespaces,
            dimension=int(data.get("dimension", 0)),
            index_fullness=float(data.get("indexFullness", 0.0)),
            total_vector_count=int(data.get("totalVectorCount", 0)),
        )

    async def test_connection(self) -> tuple[bool, str]:
        try:
            stats = await self.describe_index_stats()
        except (VectorStoreError, httpx.HTTPError, asyncio.TimeoutError, ValueError) as e:
            return False, str(e) or type(e).__name__
        return True, f"Connection successful. Total vectors: {stats.total_vector_count}"
