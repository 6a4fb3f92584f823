import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cheersearch.models.search import VectorRecord
from cheersearch.services.embedding import EmbeddingClient
from cheersearch.services.vector_store import (
    METADATA_MAX_BYTES,
    METADATA_MAX_KEYS,
    PineconeVectorStore,
    metadata_size,
)

logger = logging.getLogger("cheersearch.indexer")

BATCH_SIZE = 50
NAMESPACE_KNOWLEDGE = "knowledge"
NAMESPACE_WINES = "wines"
KNOWLEDGE_TEXT_LIMIT = 40_000
WINE_TEXT_LIMIT = 1_000


@dataclass
class IndexDocument:
    """A piece of content to embed and store."""

    id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


def chunk_markdown_by_chapter(content: str, course_id: str) -> list[IndexDocument]:
    """Split markdown into one document per ``## `` chapter.

    Text before the first chapter heading becomes its own untitled chunk.
    """
    sections: list[tuple[str, str]] = []
    chapter = ""
    body: list[str] = []

    def flush():
        text = "\n".join(part for part in [chapter, *body] if part).strip()
        if text:
            sections.append((chapter.removeprefix("##").strip(), text))

    for line in content.split("\n"):
        if line.startswith("## "):
            if chapter or body:
                flush()
            chapter = line
            body = []
        else:
            body.append(line)
    if chapter or body:
        flush()

    stamp = int(time.time() * 1000)
    return [
        IndexDocument(
            id=f"kb-{course_id}-{i}-{stamp}",
            text=text,
            metadata={"course_id": course_id, "chapter": title, "source": f"{course_id}.md"},
        )
        for i, (title, text) in enumerate(sections)
    ]


def chunks_from_course_json(data: dict, course_id: str) -> list[IndexDocument]:
    """One document per chapter of a course JSON file (``{"chapters": [...]}``)."""
    stamp = int(time.time() * 1000)
    documents = []
    for i, chapter in enumerate(data.get("chapters") or []):
        title = chapter.get("title") or f"Chapter {i + 1}"
        text = "\n".join(part for part in [title, chapter.get("content")] if part).strip()
        if not text:
            continue
        documents.append(
            IndexDocument(
                id=f"course-{course_id}-ch-{i}-{stamp}",
                text=text,
                metadata={"course_id": course_id, "chapter": title, "source": f"{course_id}.json"},
            )
        )
    return documents


def wine_documents(wines: list[dict]) -> list[IndexDocument]:
    documents = []
    for i, wine in enumerate(wines):
        text = " ".join(
            str(part)
            for part in [
                wine.get("name"),
                wine.get("type"),
                wine.get("region"),
                wine.get("country"),
                wine.get("description"),
                " ".join(wine.get("tags") or []),
                wine.get("variety"),
            ]
            if part
        )
        name = str(wine.get("name") or "").replace(" ", "-")
        wine_id = wine.get("id") or f"wine-{i}-{name}"
        documents.append(
            IndexDocument(
                id=f"wine-{wine_id}",
                text=text,
                metadata={
                    "type": "wine",
                    "wine_id": wine.get("id"),
                    "name": wine.get("name"),
                    "wine_type": wine.get("type"),
                    "region": wine.get("region"),
                    "country": wine.get("country"),
                },
            )
        )
    return documents


def load_knowledge_documents(root: Path) -> list[IndexDocument]:
    """Collect knowledge chunks from ``wine-knowledge/*.md`` and ``courses/*.json``."""
    documents: list[IndexDocument] = []

    knowledge_dir = root / "wine-knowledge"
    if knowledge_dir.is_dir():
        for path in sorted(knowledge_dir.glob("*.md")):
            documents.extend(
                chunk_markdown_by_chapter(path.read_text(encoding="utf-8"), path.stem)
            )

    courses_dir = root / "courses"
    if courses_dir.is_dir():
        for path in sorted(courses_dir.glob("*.json")):
            if path.name == "index.json":
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except ValueError as e:
                logger.warning("Skipping unreadable course file %s: %s", path, e)
                continue
            documents.extend(chunks_from_course_json(data, path.stem))

    return documents


def fit_metadata(metadata: dict[str, Any], text: str, text_limit: int) -> dict[str, Any] | None:
    """Metadata with ``text`` attached, shortened to fit the store's byte limit.

    Returns None when the other keys alone break the limits.
    """
    fitted = {k: v for k, v in metadata.items() if v is not None}
    if len(fitted) >= METADATA_MAX_KEYS:
        return None
    candidate = text[:text_limit]
    fitted["text"] = candidate
    if metadata_size(fitted) <= METADATA_MAX_BYTES:
        return fitted

    fitted["text"] = ""
    if metadata_size(fitted) > METADATA_MAX_BYTES:
        return None

    # longest prefix that fits; size grows monotonically with prefix length
    low, high = 0, len(candidate)
    while high - low > 1:
        mid = (low + high) // 2
        fitted["text"] = candidate[:mid]
        if metadata_size(fitted) <= METADATA_MAX_BYTES:
            low = mid
        else:
            high = mid
    fitted["text"] = candidate[:low]
    return fitted


async def index_documents(
    documents: list[IndexDocument],
    embedder: EmbeddingClient,
    store: PineconeVectorStore,
    namespace: str,
    text_limit: int = KNOWLEDGE_TEXT_LIMIT,
    batch_size: int = BATCH_SIZE,
) -> int:
    """Embed documents and upsert them in batches. Returns the number stored.

    Documents the provider cannot embed, or whose metadata cannot be made
    to fit the store limits, are skipped. ``text`` is cut to ``text_limit``
    characters and then to the byte limit.
    """
    total = 0
    for start in range(0, len(documents), batch_size):
        batch = documents[start : start + batch_size]
        records = []
        for doc in batch:
            vector = await embedder.embed(doc.text)
            if vector is None:
                logger.warning("No embedding for document %s, skipping", doc.id)
                continue
            metadata = fit_metadata(doc.metadata, doc.text, text_limit)
            if metadata is None:
                logger.warning("Metadata for document %s exceeds the store limit, skipping", doc.id)
                continue
            records.append(VectorRecord(id=doc.id, values=vector, metadata=metadata))

        if not records:
            continue
        await store.upsert(records, namespace)
        total += len(records)
        logger.info("Namespace %s: upserted %d/%d", namespace, total, len(documents))

    return total
