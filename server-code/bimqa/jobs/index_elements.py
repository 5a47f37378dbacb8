# bimqa/jobs/index_elements.py
"""
Renders a short text per element (name, category, type, location, system,
equipment, classification), embeds with Gemini and upserts into Pinecone so
the chat endpoint can restrict queries to semantically close elements.

    python -m bimqa.jobs.index_elements [urn]
"""
from __future__ import annotations
import logging
import sys
from typing import Any, Dict, List, Optional

from pinecone import Pinecone
from sqlalchemy import create_engine, text
from bimqa.settings import Settings
from bimqa.core.embedding_engine import GeminiEmbeddingEngine
from bimqa.core.element_index import PineconeElementIndex, ensure_index

logger = logging.getLogger("bimqa.jobs.index_elements")

BATCH_SIZE = 50

LABELS = (
    ("component_type", "Category"),
    ("type_name", "Type"),
    ("family_name", "Family"),
    ("level_number", "Level"),
    ("room_name", "Room"),
    ("room_type", "Room type"),
    ("system_type", "System type"),
    ("system_name", "System"),
    ("manufacturer", "Manufacturer"),
    ("model_name", "Model"),
    ("omniclass_title", "OmniClass"),
)


def element_text(row: Dict[str, Any]) -> str:
    parts = [str(row.get("name") or "").strip()]
    for col, label in LABELS:
        v = row.get(col)
        if v is not None and str(v).strip():
            parts.append(f"{label}: {str(v).strip()}")
    return "\n".join(p for p in parts if p)


def index_batch(embedder: GeminiEmbeddingEngine, repo: PineconeElementIndex, rows: List[Dict[str, Any]]) -> int:
    texts = [element_text(r) for r in rows]
    embs = embedder.get_batch_embeddings(texts).embeddings
    items = []
    for row, emb in zip(rows, embs):
        if not emb.values:
            logger.warning("Empty embedding for element %s; skipped", row["id"])
            continue
        items.append({
            "urn": row["urn"],
            "element_id": row["id"],
            "embedding": emb.values,
            "metadata": {"component_type": row.get("component_type") or ""},
        })
    return repo.upsert_elements(items)


def main(urn: Optional[str] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    s = Settings()
    if not (s.PINECONE_API_KEY and s.PINECONE_INDEX):
        logger.error("PINECONE_API_KEY and PINECONE_INDEX are required")
        return

    eng = create_engine(s.DB_URL_RO)
    embedder = GeminiEmbeddingEngine(api_key=s.GEMINI_API_KEY, model=s.GEMINI_EMBED_MODEL, dim=s.EMBED_DIM)
    # the index must exist before PineconeElementIndex opens a handle to it
    ensure_index(Pinecone(api_key=s.PINECONE_API_KEY), s.PINECONE_INDEX, dimension=s.EMBED_DIM)
    repo = PineconeElementIndex(api_key=s.PINECONE_API_KEY, index_name=s.PINECONE_INDEX, namespace=s.PINECONE_NAMESPACE)

    cols = ", ".join(["id", "urn", "name", *(c for c, _ in LABELS)])
    sql = f"SELECT {cols} FROM elements"
    params: Dict[str, Any] = {}
    if urn:
        sql += " WHERE urn = :urn"
        params["urn"] = urn
    sql += " ORDER BY id"

    with eng.connect() as conn:
        rows = [dict(r) for r in conn.execute(text(sql), params).mappings()]
    if not rows:
        logger.info("No elements found%s", f" for {urn}" if urn else "")
        return

    total = 0
    for i in range(0, len(rows), BATCH_SIZE):
        batch = rows[i:i + BATCH_SIZE]
        try:
            total += index_batch(embedder, repo, batch)
        except Exception as ex:
            logger.warning("Skip batch starting at element %s: %s", batch[0]["id"], ex)
    logger.info("Upserted %d element vectors", total)


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
