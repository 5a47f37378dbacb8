# bimqa/core/task_executor.py
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from bimqa.core.columns import LIST_COLUMNS, TABLE, ElementColumn
from bimqa.core.errors import PlanContractError
from bimqa.core.gemini_client import GeminiClient
from bimqa.core.models import QueryPlan
from bimqa.core.metadata import load_blob
from bimqa.core.quantities import QUANTITIES, Quantity, coerce_number, sum_quantities
from bimqa.core.query_compiler import CompiledFilter
from bimqa.core.read_only_db_executor import ReadOnlyDbExecutor
from bimqa.prompts.versioned.v1.quantities import QUANTITY_PROMPT

logger = logging.getLogger(__name__)


def _norm(v: Any) -> str:
    return str(v if v is not None else "").strip()


def props_value(blob: Any, key: str) -> Any:
    """One props_flat value; malformed or non-object blobs read as missing."""
    pf = load_blob(blob)
    return pf.get(key) if pf is not None else None


def _doc(r: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": r.get("id"),
        "urn": r.get("urn"),
        "guid": r.get("guid"),
        "dbId": r.get("db_id"),
        "name": r.get("name"),
        "basic": {
            "component_type": r.get("component_type"),
            "type_name": r.get("type_name"),
            "family_name": r.get("family_name"),
        },
        "location": {
            "level_number": r.get("level_number"),
            "room_name": r.get("room_name"),
            "room_type": r.get("room_type"),
        },
        "system": {
            "system_type": r.get("system_type"),
            "system_name": r.get("system_name"),
        },
        "equipment": {
            "manufacturer": r.get("manufacturer"),
            "model_name": r.get("model_name"),
        },
        "omniclass": {
            "title": r.get("omniclass_title"),
            "number": r.get("omniclass_number"),
        },
    }


class TaskExecutor:
    """Runs one validated plan over the compiled filter. Every handler is a read."""

    def __init__(
        self,
        db: ReadOnlyDbExecutor,
        reasoning: Optional[GeminiClient] = None,
        *,
        quantity_strategy: str = "llm",
        sum_max_rows: int = 200,
        answer_language: str = "Vietnamese",
    ):
        self.db = db
        self.reasoning = reasoning
        self.quantity_strategy = quantity_strategy
        self.sum_max_rows = sum_max_rows
        self.answer_language = answer_language

    def run(self, plan: QueryPlan, compiled: CompiledFilter, question: str = "") -> Dict[str, Any]:
        if plan.task == "count":
            return self.count(compiled)
        if plan.task == "distinct":
            return self.distinct(compiled, plan.targetParam, plan.limit)
        if plan.task == "group_count":
            return self.group_count(compiled, plan.targetParam, plan.limit)
        if plan.task in QUANTITIES:
            return self.sum_quantity(QUANTITIES[plan.task], plan, compiled, question)
        return self.list_elements(compiled, plan.limit)

    # === handlers ===
    def count(self, compiled: CompiledFilter) -> Dict[str, Any]:
        sql = f"SELECT COUNT(*) AS count FROM {TABLE} WHERE {compiled.where}"
        logger.info("Count query: %s", sql)
        n = self.db.scalar(sql, compiled.bindings())
        return {"kind": "count", "count": int(n or 0)}

    def distinct(self, compiled: CompiledFilter, field: Optional[ElementColumn], limit: Optional[int] = None) -> Dict[str, Any]:
        if field is None:
            raise PlanContractError("distinct requires targetParam")
        col = field.sql
        sql = (
            f"SELECT DISTINCT {col} AS value FROM {TABLE} "
            f"WHERE {compiled.where} AND {col} IS NOT NULL ORDER BY value"
        )
        if limit:
            sql += f" LIMIT {int(limit)}"
        rows = self.db.execute(sql, compiled.bindings())
        values: List[str] = []
        for r in rows:
            v = _norm(r["value"])
            if v and v not in values:
                values.append(v)
        return {"kind": "distinct", "field": col, "values": values}

    def group_count(self, compiled: CompiledFilter, field: Optional[ElementColumn], limit: Optional[int] = None) -> Dict[str, Any]:
        if field is None:
            raise PlanContractError("group_count requires targetParam")
        col = field.sql
        # ties ordered by the grouped value so output is stable
        sql = (
            f"SELECT {col} AS value, COUNT(*) AS count FROM {TABLE} "
            f"WHERE {compiled.where} AND {col} IS NOT NULL "
            f"GROUP BY {col} ORDER BY count DESC, value ASC"
        )
        if limit:
            sql += f" LIMIT {int(limit)}"
        rows = self.db.execute(sql, compiled.bindings())
        return {
            "kind": "group_count",
            "field": col,
            "rows": [{col: r["value"], "count": int(r["count"])} for r in rows],
        }

    def list_elements(self, compiled: CompiledFilter, limit: Optional[int] = None) -> Dict[str, Any]:
        sql = f"SELECT {', '.join(LIST_COLUMNS)} FROM {TABLE} WHERE {compiled.where} ORDER BY id"
        if limit:
            sql += f" LIMIT {int(limit)}"
        rows = self.db.execute(sql, compiled.bindings())
        return {"kind": "list", "docs": [_doc(r) for r in rows]}

    def sum_quantity(self, quantity: Quantity, plan: QueryPlan, compiled: CompiledFilter, question: str = "") -> Dict[str, Any]:
        props_key = plan.propsFlatKey or quantity.default_key
        sql = (
            f"SELECT props_flat, name, type_name, level_number "
            f"FROM {TABLE} WHERE {compiled.where} ORDER BY id LIMIT {int(self.sum_max_rows)}"
        )
        rows: List[Dict[str, Any]] = []
        for r in self.db.execute(sql, compiled.bindings()):
            blob = r.pop("props_flat")
            rows.append({**r, "raw": props_value(blob, props_key)})
        logger.info("%s rows for %r: %d", quantity.name, props_key, len(rows))

        if self.quantity_strategy == "local" or self.reasoning is None:
            summed = sum_quantities((r["raw"] for r in rows), quantity)
            total, n, unit, notes = summed["total"], summed["count"], summed["unit"], summed["notes"]
        else:
            extracted = self._extract_with_llm(quantity, plan, props_key, rows, question)
            total = coerce_number(extracted.get(quantity.total_field))
            n = int(coerce_number(extracted.get("count")))
            unit = _norm(extracted.get("unit")) or quantity.default_unit
            notes = _norm(extracted.get("notes"))

        return {
            "kind": quantity.task,
            "propsFlatKey": props_key,
            quantity.total_field: total,
            "n": n,
            "unit": unit,
            "notes": notes,
        }

    def _extract_with_llm(self, quantity: Quantity, plan: QueryPlan, props_key: str,
                          rows: List[Dict[str, Any]], question: str) -> Dict[str, Any]:
        raw_field = f"{quantity.name}_raw"
        data = [{raw_field: r["raw"], "name": r.get("name"), "type_name": r.get("type_name"),
                 "level_number": r.get("level_number")} for r in rows]
        prompt = QUANTITY_PROMPT.format(
            NAME=quantity.name,
            QUESTION=question or plan.notes,
            CATEGORY=plan.category or "All components",
            PROPS_KEY=props_key,
            FILTER=f"{plan.filterParam.sql} = {plan.filterValue}" if plan.filterParam is not None else "None",
            RAW_FIELD=raw_field,
            ROWS=json.dumps(data, ensure_ascii=False, indent=2, default=str),
            UNIT=quantity.default_unit,
            UNIT_ASCII=quantity.default_unit.replace("²", "2").replace("³", "3"),
            TOTAL_FIELD=quantity.total_field,
            LANGUAGE=self.answer_language,
        )
        result = self.reasoning.complete_json(prompt, temperature=0.1)
        logger.info("%s analysis: %s", quantity.name, result)
        return result
