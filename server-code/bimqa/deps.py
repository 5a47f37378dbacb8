# bimqa/deps.py
from __future__ import annotations
from functools import lru_cache
from typing import Optional
from sqlalchemy import create_engine

from bimqa.settings import Settings
from bimqa.core.gemini_client import GeminiClient
from bimqa.core.embedding_engine import GeminiEmbeddingEngine
from bimqa.core.element_index import PineconeElementIndex
from bimqa.core.orchestrator import BimQuestionOrchestrator
from bimqa.core.read_only_db_executor import ReadOnlyDbExecutor
from bimqa.core.semantic_search import SemanticSearch
from bimqa.core.task_executor import TaskExecutor


@lru_cache(maxsize=1)
def settings() -> Settings:
    return Settings()


@lru_cache(maxsize=1)
def engine():
    s = settings()
    # Pre-ping keeps connections healthy over time
    return create_engine(s.DB_URL_RO, pool_pre_ping=True)


@lru_cache(maxsize=1)
def gemini() -> GeminiClient:
    s = settings()
    return GeminiClient(
        api_key=s.GEMINI_API_KEY,
        model=s.GEMINI_MODEL,
        fallback_model=s.GEMINI_FALLBACK_MODEL,
    )


@lru_cache(maxsize=1)
def embedder() -> GeminiEmbeddingEngine:
    s = settings()
    return GeminiEmbeddingEngine(
        api_key=s.GEMINI_API_KEY,
        model=s.GEMINI_EMBED_MODEL,
        dim=s.EMBED_DIM,
    )


def use_semantic_search() -> bool:
    s = settings()
    return bool(s.USE_SEMANTIC_SEARCH and s.PINECONE_API_KEY and s.PINECONE_INDEX)


@lru_cache(maxsize=1)
def element_index() -> Optional[PineconeElementIndex]:
    # lazy-load Pinecone only if enabled
    if not use_semantic_search():
        return None
    s = settings()
    return PineconeElementIndex(
        api_key=s.PINECONE_API_KEY,
        index_name=s.PINECONE_INDEX,
        namespace=s.PINECONE_NAMESPACE,
    )


@lru_cache(maxsize=1)
def db() -> ReadOnlyDbExecutor:
    s = settings()
    return ReadOnlyDbExecutor(
        engine=engine(),
        default_limit=s.DEFAULT_SQL_LIMIT,
        statement_timeout_ms=s.STATEMENT_TIMEOUT_MS,
    )


@lru_cache(maxsize=1)
def orchestrator() -> BimQuestionOrchestrator:
    s = settings()
    index = element_index()
    semantic = SemanticSearch(embedder(), index) if index is not None else None
    executor = TaskExecutor(
        db(),
        gemini(),
        quantity_strategy=s.QUANTITY_STRATEGY,
        sum_max_rows=s.SUM_MAX_ROWS,
        answer_language=s.ANSWER_LANGUAGE,
    )
    return BimQuestionOrchestrator(
        gemini(),
        db(),
        executor,
        semantic,
        strategy=s.REASONING_STRATEGY,
        sample_limit=s.META_SAMPLE_LIMIT,
        scan_limit=s.META_SCAN_LIMIT,
        key_limit=s.META_KEY_LIMIT,
        default_limit=s.PLAN_DEFAULT_LIMIT,
        max_limit=s.PLAN_MAX_LIMIT,
        default_top_k=s.SEMANTIC_TOP_K,
        max_top_k=s.SEMANTIC_MAX_TOP_K,
        answer_language=s.ANSWER_LANGUAGE,
    )
