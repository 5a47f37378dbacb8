# bimqa/core/plan_validator.py
"""
Turns the reasoning service's raw JSON into a safe `QueryPlan`.

The raw plan is untrusted: column names go through the allow-list, the
category is resolved against the model's real category set, and numbers are
clamped. Nothing here raises on bad input; bad fields are dropped.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, Optional

from bimqa.core.columns import allowed_param
from bimqa.core.models import TASKS, QueryPlan

logger = logging.getLogger(__name__)

SCALARS = (str, int, float, bool)


def resolve_category(value: Any, available: Iterable[str]) -> Optional[str]:
    """Exact match, then case-insensitive match (canonical casing), else None."""
    if not isinstance(value, str) or not value.strip():
        return None
    wanted = value.strip()
    cats = list(available)
    if wanted in cats:
        return wanted
    lowered = wanted.lower()
    for c in cats:
        if c.lower() == lowered:
            logger.info("Category case fix: %r -> %r", value, c)
            return c
    logger.warning("Invalid category %r - ignoring", value)
    return None


def _bounded_int(value: Any, default: int, maximum: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    if n <= 0:
        return default
    return min(n, maximum)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def validate_plan(
    raw: Dict[str, Any],
    urn: str,
    available_categories: Iterable[str],
    *,
    default_limit: int = 100,
    max_limit: int = 1000,
    default_top_k: int = 50,
    max_top_k: int = 500,
) -> QueryPlan:
    raw = raw or {}

    filter_param = allowed_param(raw.get("filterParam"))
    if raw.get("filterParam") and filter_param is None:
        logger.warning("Invalid filterParam %r - ignoring", raw.get("filterParam"))
    target_param = allowed_param(raw.get("targetParam"))
    if raw.get("targetParam") and target_param is None:
        logger.warning("Invalid targetParam %r - ignoring", raw.get("targetParam"))

    filter_value = raw.get("filterValue")
    if filter_value is not None and not isinstance(filter_value, SCALARS):
        logger.warning("Non-scalar filterValue dropped: %r", filter_value)
        filter_value = None

    task = raw.get("task") or "count"
    if task not in TASKS:
        logger.warning("Unknown task %r - falling back to list", task)
        task = "list"

    props_key = _text(raw.get("propsFlatKey"))
    if props_key and '"' in props_key:
        logger.warning("Invalid propsFlatKey %r - ignoring", props_key)
        props_key = None

    intent = raw.get("intent")
    return QueryPlan(
        urn=urn,
        intent="general" if intent == "general" else "bim",
        task=task,
        category=resolve_category(raw.get("category"), available_categories),
        filterParam=filter_param,
        filterValue=filter_value,
        targetParam=target_param,
        propsFlatKey=props_key,
        limit=_bounded_int(raw.get("limit"), default_limit, max_limit),
        useSemanticSearch=_bool(raw.get("useSemanticSearch")),
        semanticQuery=_text(raw.get("semanticQuery")),
        topK=_bounded_int(raw.get("topK"), default_top_k, max_top_k),
        notes=_text(raw.get("notes")) or "",
    )
