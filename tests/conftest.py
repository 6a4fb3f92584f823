import httpx
import pytest

from cheersearch.models.search import VectorMatch
from cheersearch.services.history import SearchContextTracker, SearchTracker
from cheersearch.services.http.resilient import RetryPolicy
from cheersearch.storage import MemoryStore

FAST_POLICY = RetryPolicy(timeout_ms=1000, retries=2, backoff_ms=10)


class FakeEmbedder:
    """Returns a fixed vector, or None to simulate an unavailable provider."""

    def __init__(self, vector=(0.1, 0.2, 0.3)):
        self.vector = list(vector) if vector is not None else None
        self.calls: list[str] = []

    async def embed(self, text):
        self.calls.append(text)
        return self.vector


class FakeVectorStore:
    def __init__(self, matches=None, error: Exception | None = None):
        self.matches = matches or []
        self.error = error
        self.queries: list[dict] = []

    async def query(self, vector, top_k=5, namespace=None, filter=None, include_metadata=True):
        self.queries.append(
            {"vector": vector, "top_k": top_k, "namespace": namespace, "filter": filter}
        )
        if self.error is not None:
            raise self.error
        return list(self.matches)


def make_match(match_id: str, score: float, content: str, **metadata) -> VectorMatch:
    return VectorMatch(
        id=match_id,
        score=score,
        metadata={"title": f"Title {match_id}", "content": content, **metadata},
    )


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def tracker(store):
    return SearchTracker(store, max_history=100, max_trending=50)


@pytest.fixture
def context_tracker(store):
    return SearchContextTracker(store, max_entries=5)


@pytest.fixture
def sample_matches():
    return [
        make_match("m1", 0.80, "An introduction to Bordeaux red wine regions.", course_id="wine-101"),
        make_match("m2", 0.95, "Whisky basics: single malt and blended whisky.", wine_id="w-9"),
        make_match("m3", 0.65, "Below the threshold, about red wine too."),
        make_match("m4", 0.75, "Sake brewing and rice polishing explained.", article_id="a-3"),
    ]
