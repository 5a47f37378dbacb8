# bimqa/core/semantic_search.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from bimqa.core.embedding_engine import GeminiEmbeddingEngine
from bimqa.core.element_index import PineconeElementIndex
from bimqa.core.models import QueryPlan
from bimqa.core.redact import redact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SemanticOutcome:
    status: Literal["applied", "skipped", "degraded"]
    ids: List[int] = field(default_factory=list)
    reason: str = ""

    @property
    def candidate_ids(self) -> Optional[List[int]]:
        """Ids to restrict to, or None for "no restriction"."""
        return self.ids if self.status == "applied" and self.ids else None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "ids": len(self.ids), "reason": self.reason}


class SemanticSearch:
    def __init__(self, embedder: Optional[GeminiEmbeddingEngine], index: Optional[PineconeElementIndex]):
        self.embedder = embedder
        self.index = index

    @property
    def enabled(self) -> bool:
        return self.embedder is not None and self.index is not None

    def for_plan(self, plan: QueryPlan) -> SemanticOutcome:
        if not plan.useSemanticSearch or not plan.semanticQuery:
            return SemanticOutcome("skipped", reason="not_requested")
        return self.restrict(plan.urn, plan.semanticQuery, plan.topK)

    def restrict(self, urn: str, semantic_query: str, top_k: int) -> SemanticOutcome:
        if not (semantic_query or "").strip():
            return SemanticOutcome("skipped", reason="empty_query")
        if not self.enabled:
            return SemanticOutcome("skipped", reason="disabled")
        try:
            vector = self.embedder.embed(semantic_query)
        except Exception as ex:
            logger.warning("Embedding failed; continuing without restriction: %s", redact(str(ex)))
            return SemanticOutcome("degraded", reason="embedding_error")
        if not vector:
            logger.warning("Empty embedding; continuing without restriction")
            return SemanticOutcome("degraded", reason="empty_embedding")
        try:
            ids = self.index.nearest_element_ids(urn, vector, top_k)
        except Exception as ex:
            logger.warning("Vector search failed; continuing without restriction: %s", redact(str(ex)))
            return SemanticOutcome("degraded", reason="search_error")
        if not ids:
            return SemanticOutcome("degraded", reason="no_match")
        logger.info("Semantic search restricted %s to %d candidates", urn, len(ids))
        return SemanticOutcome("applied", ids=ids, reason="ok")
