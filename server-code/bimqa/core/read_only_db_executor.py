# bimqa/core/read_only_db_executor.py
from __future__ import annotations
from typing import List, Dict, Any, Optional
from decimal import Decimal
from datetime import date, datetime

from sqlalchemy import text
from sqlalchemy.engine import Engine

from bimqa.core.sql_guard import sanitize_sql


def _json_safe(v: Any) -> Any:
    """Coerce DB types into JSON-serializable values."""
    if isinstance(v, Decimal):
        return float(v)
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return v


class ReadOnlyDbExecutor:
    def __init__(self, engine: Engine, default_limit: int, statement_timeout_ms: int):
        self.engine = engine
        self.default_limit = default_limit
        self.statement_timeout_ms = statement_timeout_ms

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def execute(self, sql: str, params: Optional[Dict[str, Any]] = None, *,
                inject_limit: bool = True) -> List[Dict[str, Any]]:
        """Run one sanitized read. inject_limit=False is for reads that must see every row."""
        sanitized = sanitize_sql(sql, self.default_limit, self.dialect, inject_limit=inject_limit)
        with self.engine.begin() as conn:
            if self.dialect == "postgresql":
                conn.exec_driver_sql(f"SET LOCAL statement_timeout = {int(self.statement_timeout_ms)}")
            rows = conn.execute(text(sanitized), params or {}).mappings().all()
            return [{k: _json_safe(v) for k, v in dict(r).items()} for r in rows]

    def scalar(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Any:
        rows = self.execute(sql, params)
        if not rows:
            return None
        return next(iter(rows[0].values()), None)
