# bimqa/core/orchestrator.py
from __future__ import annotations
import json
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from bimqa.core.errors import MissingInputError, ReasoningError
from bimqa.core.gemini_client import GeminiClient
from bimqa.core.metadata import discover_metadata
from bimqa.core.models import ModelMetadata, QueryPlan
from bimqa.core.plan_validator import validate_plan
from bimqa.core.query_compiler import compile_filter
from bimqa.core.read_only_db_executor import ReadOnlyDbExecutor
from bimqa.core.semantic_search import SemanticOutcome, SemanticSearch
from bimqa.core.task_executor import TaskExecutor
from bimqa.prompts.versioned.v1 import analyst, narrator

logger = logging.getLogger(__name__)

PROMPT_DOCS_LIMIT = 50


@dataclass(frozen=True)
class HintOutcome:
    status: Literal["detected", "none", "failed", "skipped"]
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "category": self.category}


@dataclass
class _Trace:
    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timings: Dict[str, int] = field(default_factory=dict)

    @contextmanager
    def step(self, name: str):
        t0 = time.perf_counter()
        try:
            yield
        finally:
            dt = int((time.perf_counter() - t0) * 1000)
            self.timings[name] = dt
            logger.info("[%s] %s took %d ms", self.trace_id, name, dt)


def _blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


class BimQuestionOrchestrator:
    """
    Question -> metadata -> (hint) -> intent/parameters -> plan -> query -> answer.

    strategy="unified" asks the reasoning service once for intent and parameters.
    strategy="two_stage" first asks for a category hint, then the intent, then the
    parameters (which may request a semantic candidate restriction).
    """

    def __init__(
        self,
        reasoning: GeminiClient,
        db: ReadOnlyDbExecutor,
        executor: TaskExecutor,
        semantic: Optional[SemanticSearch] = None,
        *,
        strategy: str = "unified",
        sample_limit: Optional[int] = None,
        scan_limit: Optional[int] = None,
        key_limit: Optional[int] = None,
        default_limit: int = 100,
        max_limit: int = 1000,
        default_top_k: int = 50,
        max_top_k: int = 500,
        answer_language: str = "Vietnamese",
    ):
        if strategy not in ("unified", "two_stage"):
            raise ValueError(f"Unknown reasoning strategy: {strategy}")
        self.reasoning = reasoning
        self.db = db
        self.executor = executor
        self.semantic = semantic
        self.strategy = strategy
        self.sample_limit = sample_limit
        self.scan_limit = scan_limit
        self.key_limit = key_limit
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.default_top_k = default_top_k
        self.max_top_k = max_top_k
        self.answer_language = answer_language

    # === Main entry ===
    def answer(self, model_id: Optional[str], question: Optional[str], debug: bool = False) -> Dict[str, Any]:
        if _blank(model_id):
            raise MissingInputError("urn")
        if _blank(question):
            raise MissingInputError("question")
        urn, question = model_id.strip(), question.strip()
        trace = _Trace()

        with trace.step("metadata"):
            meta = discover_metadata(
                self.db, urn,
                sample_limit=self.sample_limit,
                scan_limit=self.scan_limit,
                key_limit=self.key_limit,
            )
        logger.info("[%s] Meta: %d categories, %d area keys, %d volume keys",
                    trace.trace_id, len(meta.categories), len(meta.areaKeys), len(meta.volumeKeys))

        hint = HintOutcome("skipped")
        if self.strategy == "two_stage":
            with trace.step("hint"):
                hint = self._category_hint(question, meta)

        with trace.step("reasoning"):
            analysis = self._resolve(question, meta)

        if analysis.get("intent") == "general":
            with trace.step("answer"):
                answer = self.reasoning.complete_text(
                    narrator.GENERAL_PROMPT.format(LANGUAGE=self.answer_language, QUESTION=question),
                    temperature=0.2,
                )
            out: Dict[str, Any] = {"answer": answer}
            if debug:
                out["debug"] = {"trace_id": trace.trace_id, "meta": meta.to_dict(), "analysis": analysis,
                                "hint": hint.to_dict(), "timings": trace.timings}
            return out

        plan = validate_plan(
            analysis, urn, meta.categories,
            default_limit=self.default_limit,
            max_limit=self.max_limit,
            default_top_k=self.default_top_k,
            max_top_k=self.max_top_k,
        )
        plan = self._backfill_category(plan, analysis, hint, meta)
        logger.info("[%s] Final plan: %s", trace.trace_id, plan.model_dump(mode="json"))

        outcome = SemanticOutcome("skipped", reason="unified")
        if self.strategy == "two_stage":
            if self.semantic is None:
                outcome = SemanticOutcome("skipped", reason="disabled")
            else:
                with trace.step("semantic_search"):
                    outcome = self.semantic.for_plan(plan)

        compiled = compile_filter(plan, meta, outcome.candidate_ids)
        with trace.step("query"):
            result = self.executor.run(plan, compiled, question)
        logger.info("[%s] Query result kind=%s", trace.trace_id, result.get("kind"))

        with trace.step("answer"):
            answer = self.reasoning.complete_text(self._answer_prompt(question, meta, plan, result), temperature=0.2)

        out = {
            "answer": answer,
            "hits": {"count": len(result["docs"]), "docs": result["docs"]} if result["kind"] == "list" else result,
        }
        if debug:
            out["debug"] = {
                "trace_id": trace.trace_id,
                "meta": meta.to_dict(),
                "analysis": analysis,
                "hint": hint.to_dict(),
                "plan": plan.model_dump(mode="json"),
                "filter": compiled.to_dict(),
                "semantic": outcome.to_dict(),
                "result": result,
                "timings": trace.timings,
            }
        return out

    # === Reasoning steps ===
    def _resolve(self, question: str, meta: ModelMetadata) -> Dict[str, Any]:
        if self.strategy == "unified":
            return self.reasoning.complete_json(analyst.UNIFIED_ANALYSIS_PROMPT.format(
                CATEGORIES=analyst.numbered(meta.categories),
                TASK_TYPES=analyst.TASK_TYPES,
                CATEGORY_ALIASES=analyst.CATEGORY_ALIASES,
                PARAM_SAMPLES=analyst.samples_text(meta.paramSamples),
                AREA_KEYS=analyst.bullets(meta.areaKeys),
                VOLUME_KEYS=analyst.bullets(meta.volumeKeys),
                QUESTION=question,
            ), temperature=0.1)

        intent = self.reasoning.complete_json(analyst.INTENT_PROMPT.format(
            TASK_TYPES=analyst.TASK_TYPES,
            QUESTION=question,
        ), temperature=0.1)
        if intent.get("intent") == "general":
            return intent
        params = self.reasoning.complete_json(analyst.PARAMETERS_PROMPT.format(
            QUESTION=question,
            TASK=intent.get("task") or "count",
            NOTES=intent.get("notes") or "(none)",
            CATEGORIES=analyst.numbered(meta.categories),
            CATEGORY_ALIASES=analyst.CATEGORY_ALIASES,
            PARAM_SAMPLES=analyst.samples_text(meta.paramSamples),
            AREA_KEYS=analyst.bullets(meta.areaKeys),
            VOLUME_KEYS=analyst.bullets(meta.volumeKeys),
        ), temperature=0.1)
        return {**params, "intent": "bim", "task": intent.get("task"), "notes": intent.get("notes") or ""}

    def _category_hint(self, question: str, meta: ModelMetadata) -> HintOutcome:
        if not meta.categories:
            return HintOutcome("none")
        try:
            res = self.reasoning.complete_json(analyst.CATEGORY_HINT_PROMPT.format(
                CATEGORIES=analyst.numbered(meta.categories),
                CATEGORY_ALIASES=analyst.CATEGORY_ALIASES,
                QUESTION=question,
            ), temperature=0.0)
        except ReasoningError as ex:
            logger.warning("Category hint unavailable: %s", ex)
            return HintOutcome("failed")
        cat = res.get("category")
        if _blank(cat):
            return HintOutcome("none")
        return HintOutcome("detected", str(cat).strip())

    @staticmethod
    def _backfill_category(plan: QueryPlan, analysis: Dict[str, Any], hint: HintOutcome,
                           meta: ModelMetadata) -> QueryPlan:
        # only when reasoning gave no category and the hint is a real category of this model
        if hint.status != "detected" or not _blank(analysis.get("category")):
            return plan
        if hint.category not in meta.categories:
            logger.info("Ignoring category hint %r: not a category of this model", hint.category)
            return plan
        logger.info("Category backfilled from hint: %r", hint.category)
        return plan.model_copy(update={"category": hint.category})

    def _answer_prompt(self, question: str, meta: ModelMetadata, plan: QueryPlan, result: Dict[str, Any]) -> str:
        shown = result
        if result.get("kind") == "list" and len(result["docs"]) > PROMPT_DOCS_LIMIT:
            shown = {**result, "docs": result["docs"][:PROMPT_DOCS_LIMIT], "total_docs": len(result["docs"])}
        return narrator.ANSWER_PROMPT.format(
            LANGUAGE=self.answer_language,
            CATEGORIES=", ".join(meta.categories[:15]) or "(none)",
            PLAN=json.dumps(plan.model_dump(mode="json"), ensure_ascii=False, indent=2, default=str),
            RESULT=json.dumps(shown, ensure_ascii=False, indent=2, default=str),
            QUESTION=question,
        )
