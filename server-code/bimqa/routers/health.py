# bimqa/routers/health.py
from __future__ import annotations

import logging
from fastapi import APIRouter
from bimqa.deps import db, element_index, use_semantic_search

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness check")
def health_check():
    return {"status": "ok"}


@router.get("/health/vector", summary="Vector index readiness (optional)")
def vector_health():
    if not use_semantic_search():
        return {"enabled": False, "ok": True}
    try:
        return {"enabled": True, "ok": True, "total_vector_count": element_index().total_vectors()}
    except Exception as ex:
        logger.warning("Vector index health check failed: %s", ex)
        return {"enabled": True, "ok": False, "error": str(ex)}


@router.get("/health/db", summary="Database connectivity (read-only)")
def db_health():
    try:
        rows = db().execute("SELECT COUNT(*) AS elements FROM elements")
        return {"ok": True, "rows": rows}
    except Exception as ex:
        logger.warning("DB health check failed: %s", ex)
        return {"ok": False, "error": str(ex)}
