# bimqa/routers/chat.py
from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from bimqa.deps import orchestrator
from bimqa.core.errors import MissingInputError, PlanContractError, ReasoningError
from bimqa.core.models import ChatRequest
from bimqa.core.orchestrator import BimQuestionOrchestrator

logger = logging.getLogger("bimqa.routers.chat")
router = APIRouter(prefix="/chat", tags=["chat"])


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "trace_id": str(uuid.uuid4())})


@router.post("/")
def chat(body: ChatRequest, orch: BimQuestionOrchestrator = Depends(orchestrator)):
    # sync endpoint: FastAPI runs it in the worker pool, one request per thread
    try:
        return orch.answer(body.model_id, body.question, debug=body.debug)
    except MissingInputError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except PlanContractError as exc:
        logger.warning("Plan contract violation: %s", exc)
        return _failure(422, str(exc))
    except ReasoningError as exc:
        logger.exception("Reasoning service failed: %s", exc)
        return _failure(502, "The reasoning service is unavailable; please try again.")
    except SQLAlchemyError as exc:
        logger.exception("Query failed: %s", exc)
        return _failure(500, "The model data could not be queried.")
    except Exception as exc:
        logger.exception("Unexpected failure: %s", exc)
        return _failure(500, "The question could not be answered.")
