"""Embed local content and upsert it into the vector store.

Usage:
    python -m scripts.seed_vectors [--data-dir data] [--skip-wines]

This script:
1. Chunks data/wine-knowledge/*.md by chapter and data/courses/*.json by chapter
2. Embeds and upserts them into the "knowledge" namespace
3. Embeds and upserts data/wines.json into the "wines" namespace

Requires EMBEDDING_API_KEY, PINECONE_API_URL and PINECONE_API_KEY (env or .env).
The index dimension must match the embedding model's output.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, ".")

from cheersearch.services.embedding import EmbeddingClient
from cheersearch.services.http.resilient import build_http_client
from cheersearch.services.indexer import (
    NAMESPACE_KNOWLEDGE,
    NAMESPACE_WINES,
    WINE_TEXT_LIMIT,
    index_documents,
    load_knowledge_documents,
    wine_documents,
)
from cheersearch.services.vector_store import PineconeVectorStore


async def main(data_dir: Path, skip_wines: bool) -> int:
    print("=== CheerSearch Vector Seeder ===\n")

    async with build_http_client() as http:
        embedder = EmbeddingClient(http)
        store = PineconeVectorStore(http)
        if not embedder.configured or not store.configured:
            print("EMBEDDING_API_KEY, PINECONE_API_URL and PINECONE_API_KEY must be set")
            return 1

        print("[1/2] Indexing knowledge chunks...")
        knowledge = load_knowledge_documents(data_dir)
        if knowledge:
            count = await index_documents(knowledge, embedder, store, NAMESPACE_KNOWLEDGE)
            print(f"  Knowledge: upserted {count}/{len(knowledge)}")
        else:
            print("  No knowledge chunks (wine-knowledge/*.md or courses/*.json)")

        print("\n[2/2] Indexing wines...")
        wines_path = data_dir / "wines.json"
        if skip_wines:
            print("  Skipped")
        elif not wines_path.exists():
            print(f"  Skip wines: {wines_path} not found")
        else:
            wines = json.loads(wines_path.read_text(encoding="utf-8"))
            docs = wine_documents(wines if isinstance(wines, list) else [])
            count = await index_documents(
                docs, embedder, store, NAMESPACE_WINES, text_limit=WINE_TEXT_LIMIT
            )
            print(f"  Wines: upserted {count}/{len(docs)}")

        stats = await store.describe_index_stats()
        print("\n=== Seed Complete ===")
        print(f"Total vectors in index: {stats.total_vector_count}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--data-dir", type=Path, default=Path("data"))
    parser.add_argument("--skip-wines", action="store_true")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.data_dir, args.skip_wines)))
