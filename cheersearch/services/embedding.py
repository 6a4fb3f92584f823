import asyncio
import logging
import numbers

import httpx

from cheersearch.config import settings
from cheersearch.services.http.resilient import RetryPolicy, resilient_request

logger = logging.getLogger("cheersearch.embedding")


class EmbeddingClient:
    """Turns text into a vector through an OpenAI-compatible embeddings API.

    Failures never propagate: blank input, missing credentials, non-2xx
    responses, malformed bodies and exhausted retries all yield None, which
    callers treat as "no vector available".
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str = None,
        api_key: str = None,
        model: str = None,
        dimension: int | None = None,
        max_chars: int = None,
        policy: RetryPolicy | None = None,
    ):
        self.client = client
        self.api_url = api_url if api_url is not None else settings.embedding_api_url
        self.api_key = api_key if api_key is not None else settings.embedding_api_key
        self.model = model or settings.embedding_model
        self.dimension = dimension if dimension is not None else settings.embedding_dimension
        self.max_chars = max_chars or settings.embedding_max_chars
        self.policy = policy or RetryPolicy.from_settings()

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_url)

    async def embed(self, text: str) -> list[float] | None:
        if not text or not text.strip():
            return None
        if not self.configured:
            logger.debug("Embedding provider not configured, skipping")
            return None

        try:
            response = await resilient_request(
                self.client,
                "POST",
                self.api_url,
                self.policy,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"model": self.model, "input": text[: self.max_chars]},
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.error("Embedding request failed: %r", e)
            return None

        if not response.is_success:
            logger.warning(
                "Embedding API returned %d: %s", response.status_code, response.text[:200]
            )
            return None

        try:
            vector = response.json()["data"][0]["embedding"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("Malformed embedding response: %r", e)
            return None

        if not isinstance(vector, list) or not vector or not all(
            isinstance(x, numbers.Real) and not isinstance(x, bool) for x in vector
        ):
            logger.warning("Embedding response did not contain a numeric vector")
            return None

        if self.dimension and len(vector) != self.dimension:
            logger.warning(
                "Embedding dimension %d does not match expected %d",
                len(vector), self.dimension,
            )
            return None

        return [float(x) for x in vector]
