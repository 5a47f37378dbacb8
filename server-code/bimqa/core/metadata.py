# bimqa/core/metadata.py
from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bimqa.core.columns import CATEGORY_FIELD, SAMPLE_FIELDS, TABLE, ElementColumn
from bimqa.core.models import ModelMetadata
from bimqa.core.read_only_db_executor import ReadOnlyDbExecutor

logger = logging.getLogger(__name__)

AREA_KEY_RE = re.compile(r"area", re.I)
VOLUME_KEY_RE = re.compile(r"volume", re.I)


def _norm(v: Any) -> str:
    return str(v if v is not None else "").strip()


def _strip_empty(values: Iterable[Any]) -> List[str]:
    """Trim, drop blanks, drop duplicates created by trimming; keeps first-seen order."""
    seen: Dict[str, None] = {}
    for v in values:
        s = _norm(v)
        if s:
            seen.setdefault(s, None)
    return list(seen)


def _limit(n: Optional[int]) -> str:
    return f" LIMIT {int(n)}" if n else ""


def _distinct_values(db: ReadOnlyDbExecutor, urn: str, column: ElementColumn, limit: Optional[int] = None) -> List[str]:
    col = column.sql
    rows = db.execute(
        f"SELECT DISTINCT {col} AS value FROM {TABLE} "
        f"WHERE urn = :urn AND {col} IS NOT NULL AND {col} != ''{_limit(limit)}",
        {"urn": urn},
        inject_limit=False,
    )
    return _strip_empty(r["value"] for r in rows)


def load_blob(raw: Any) -> Optional[Dict[str, Any]]:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, (str, bytes)) or not raw:
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def scan_quantity_keys(blobs: Iterable[Any], key_limit: Optional[int] = None) -> Tuple[List[str], List[str]]:
    """Collect property names that look like area / volume keys."""
    area: Dict[str, None] = {}
    volume: Dict[str, None] = {}
    skipped = 0
    for raw in blobs:
        pf = load_blob(raw)
        if pf is None:
            if raw:
                skipped += 1
            continue
        for k in pf.keys():
            if AREA_KEY_RE.search(k):
                area.setdefault(k, None)
            if VOLUME_KEY_RE.search(k):
                volume.setdefault(k, None)
    if skipped:
        logger.debug("Skipped %d malformed props_flat blobs", skipped)
    area_keys, volume_keys = list(area), list(volume)
    if key_limit:
        area_keys, volume_keys = area_keys[:key_limit], volume_keys[:key_limit]
    return area_keys, volume_keys


def discover_metadata(
    db: ReadOnlyDbExecutor,
    urn: str,
    *,
    sample_limit: Optional[int] = None,
    scan_limit: Optional[int] = None,
    key_limit: Optional[int] = None,
) -> ModelMetadata:
    categories = _distinct_values(db, urn, CATEGORY_FIELD)

    param_samples: Dict[str, List[str]] = {}
    for field in SAMPLE_FIELDS:
        param_samples[field.value] = _distinct_values(db, urn, field, sample_limit)

    docs = db.execute(
        f"SELECT props_flat FROM {TABLE} WHERE urn = :urn AND props_flat IS NOT NULL ORDER BY id{_limit(scan_limit)}",
        {"urn": urn},
        inject_limit=False,
    )
    area_keys, volume_keys = scan_quantity_keys((d["props_flat"] for d in docs), key_limit)

    return ModelMetadata(
        categoryField=CATEGORY_FIELD,
        categories=categories,
        paramSamples=param_samples,
        areaKeys=area_keys,
        volumeKeys=volume_keys,
    )
