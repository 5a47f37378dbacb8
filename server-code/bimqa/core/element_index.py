# bimqa/core/element_index.py
from __future__ import annotations
import logging
from typing import List, Dict, Any, Optional, Iterable
from pinecone import Pinecone, ServerlessSpec

logger = logging.getLogger(__name__)


def ensure_index(pc: Pinecone, name: str, dimension: int, metric: str = "cosine",
                 cloud: str = "aws", region: str = "us-east-1") -> bool:
    """Create the serverless index if missing. Must run before an index handle is opened."""
    existing = {i.name for i in pc.list_indexes()}
    if name in existing:
        return False
    logger.info("Creating Pinecone index %s (dim=%d, %s)", name, dimension, metric)
    pc.create_index(
        name=name,
        dimension=dimension,
        metric=metric,
        spec=ServerlessSpec(cloud=cloud, region=region),
    )
    return True


class PineconeElementIndex:
    """
    Thin repository over a Pinecone (serverless) index holding one vector per element.
    Vector ids are "<urn>:<element id>"; metadata carries urn and element_id so
    queries can be scoped to one model.
    """
    def __init__(self, api_key: str, index_name: str, namespace: Optional[str] = None):
        self.pc = Pinecone(api_key=api_key)
        self.index = self.pc.Index(index_name)
        self.namespace = namespace

    def upsert_elements(self, items: Iterable[Dict[str, Any]]) -> int:
        """items: {"urn", "element_id", "embedding", "metadata"?}"""
        vectors = []
        for it in items:
            meta = {**(it.get("metadata") or {}), "urn": it["urn"], "element_id": int(it["element_id"])}
            vectors.append({
                "id": f"{it['urn']}:{int(it['element_id'])}",
                "values": it["embedding"],
                "metadata": meta,
            })
        if vectors:
            self.index.upsert(vectors=vectors, namespace=self.namespace)
        return len(vectors)

    def nearest_element_ids(self, urn: str, vector: List[float], top_k: int) -> List[int]:
        res = self.index.query(
            vector=vector,
            top_k=top_k,
            filter={"urn": {"$eq": urn}},
            include_values=False,
            include_metadata=True,
            namespace=self.namespace,
        )
        out: List[int] = []
        for m in (res.get("matches") or []):
            md = m.get("metadata") or {}
            raw = md.get("element_id")
            if raw is None:
                raw = str(m.get("id") or "").rsplit(":", 1)[-1]
            try:
                eid = int(raw)
            except (TypeError, ValueError):
                logger.debug("Skipping match with non-integer element id: %r", m.get("id"))
                continue
            if eid not in out:
                out.append(eid)
        return out

    def total_vectors(self) -> Optional[int]:
        stats = self.index.describe_index_stats()
        total = stats.get("total_vector_count") if hasattr(stats, "get") else None
        return int(total) if total is not None else None
