# bimqa/core/embedding_engine.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import requests

API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

# Gemini embeds documents and queries slightly differently
DOCUMENT = "RETRIEVAL_DOCUMENT"
QUERY = "RETRIEVAL_QUERY"


@dataclass
class Embedding:
    values: List[float]


@dataclass
class BatchEmbedding:
    embeddings: List[Embedding]


def normalize_model(model: Optional[str]) -> str:
    m = (model or "").strip()
    if m.startswith("models/"):
        m = m[len("models/"):]
    # text-embedding-004 is the Vertex name; the Generative Language API serves embedding-001
    if m == "text-embedding-004":
        m = "embedding-001"
    return m or "embedding-001"


def _values(resp: Dict[str, Any]) -> List[float]:
    # batchEmbedContents answers {"embeddings": [{"values": [...]}]};
    # older deployments wrap it as {"responses": [{"embedding": {"values": [...]}}]}
    raw = resp.get("values") or (resp.get("embedding") or {}).get("values") or []
    return [float(x) for x in raw]


class GeminiEmbeddingEngine:
    """
    Element / query embeddings over the Gemini REST API.

    Vectors are fitted to `dim` so they always match the Pinecone index; an
    empty vector is left empty so callers can tell "nothing came back" apart.
    """

    def __init__(self, api_key: str, model: str = "embedding-001", dim: int = 768, timeout: int = 30):
        self.api_key = api_key
        self.model = normalize_model(model)
        self.dim = dim
        self.timeout = timeout
        self.url = f"{API_BASE}/{self.model}:batchEmbedContents?key={self.api_key}"

    def _fit(self, values: List[float]) -> List[float]:
        if len(values) > self.dim:
            return values[: self.dim]
        if values:
            return values + [0.0] * (self.dim - len(values))
        return values

    @retry(
        reraise=True,
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        retry=retry_if_exception_type((requests.RequestException,)),
    )
    def get_batch_embeddings(self, texts: List[str], task_type: str = DOCUMENT) -> BatchEmbedding:
        payload = {
            "requests": [
                {
                    "model": f"models/{self.model}",
                    "content": {"parts": [{"text": t}]},
                    "taskType": task_type,
                }
                for t in texts
            ]
        }
        r = requests.post(self.url, json=payload, timeout=self.timeout)
        r.raise_for_status()

        body = r.json()
        responses = body.get("embeddings") or body.get("responses") or []
        return BatchEmbedding(embeddings=[Embedding(values=self._fit(_values(resp))) for resp in responses])

    def embed(self, text: str) -> Optional[List[float]]:
        """Query text -> vector, or None when the API returned nothing usable."""
        embs = self.get_batch_embeddings([text], task_type=QUERY).embeddings
        if not embs or not embs[0].values:
            return None
        return embs[0].values
