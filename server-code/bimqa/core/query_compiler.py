# bimqa/core/query_compiler.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from bimqa.core.columns import ElementColumn
from bimqa.core.models import ModelMetadata, QueryPlan


@dataclass
class CompiledFilter:
    clauses: List[str] = field(default_factory=list)
    params: List[Any] = field(default_factory=list)

    @property
    def where(self) -> str:
        return " AND ".join(self.clauses)

    def bind(self, value: Any) -> str:
        name = f"p{len(self.params)}"
        self.params.append(value)
        return f":{name}"

    def bindings(self, **extra: Any) -> Dict[str, Any]:
        out = {f"p{i}": v for i, v in enumerate(self.params)}
        out.update(extra)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {"where": self.where, "params": list(self.params)}


def _identifier(col: Any) -> str:
    if not isinstance(col, ElementColumn):
        raise TypeError(f"Refusing to render non-allow-listed identifier: {col!r}")
    return col.sql


def _has_value(v: Any) -> bool:
    return v is not None and str(v).strip() != ""


def compile_filter(
    plan: QueryPlan,
    metadata: ModelMetadata,
    candidate_ids: Optional[Sequence[int]] = None,
) -> CompiledFilter:
    cf = CompiledFilter()
    cf.clauses.append(f"urn = {cf.bind(plan.urn)}")

    if candidate_ids:
        ids = ", ".join(str(int(i)) for i in candidate_ids)
        cf.clauses.append(f"id IN ({ids})")

    if plan.category:
        cf.clauses.append(f"{_identifier(metadata.categoryField)} = {cf.bind(plan.category.strip())}")

    if plan.filterParam is not None and _has_value(plan.filterValue):
        value = plan.filterValue if isinstance(plan.filterValue, str) else str(plan.filterValue)
        cf.clauses.append(f"{_identifier(plan.filterParam)} = {cf.bind(value)}")

    return cf
