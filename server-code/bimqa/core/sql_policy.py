from __future__ import annotations
from typing import Tuple

import sqlglot
from sqlglot import expressions as exp

# SQLAlchemy dialect name -> sqlglot dialect
DIALECTS = {"postgresql": "postgres", "sqlite": "sqlite"}


def analyze(sql: str, dialect: str = "postgresql") -> Tuple[bool, bool]:
    """Returns (has_group_or_agg, parsed_ok)."""
    try:
        expr = sqlglot.parse_one(sql, read=DIALECTS.get(dialect, "postgres"))
    except Exception:
        return False, False
    has_group = bool(list(expr.find_all(exp.Group)))
    has_agg = any(isinstance(f, exp.AggFunc) for f in expr.find_all(exp.Func))
    return has_group or has_agg, True


def should_inject_limit(sql: str, dialect: str = "postgresql") -> bool:
    has_group_or_agg, _ = analyze(sql, dialect)
    # Do not inject LIMIT for aggregates or when GROUP BY is present
    return not has_group_or_agg
