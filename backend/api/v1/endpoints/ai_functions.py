"""
Endpoints for applying AI functions and reading back their traces.
"""
import logging
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from deps import get_bundle, get_caller, get_db
from models.ai_function.trace import AIFunctionTrace
from schemas.ai_function.apply import AIFunctionTraceSchema, ApplyRequest, ApplyResponse
from services.ai_functions.autotest_scene.function import NAME as AUTOTEST_SCENE
from services.ai_functions.autotest_scene.handler import ApplyResult, AutoTestSceneHandler
from services.ai_functions.errors import AIFunctionError, UnknownFunctionError, ValidationError
from services.ai_functions.registry import get_function_factory
from services.llm.function_calling import FunctionCaller
from services.platform.bundle import AutoTestBundle

logger = logging.getLogger(__name__)

router = APIRouter()

HANDLERS = {
    AUTOTEST_SCENE: AutoTestSceneHandler,
}


def _record_trace(
    db: Session,
    function_name: str,
    body: ApplyRequest,
    started: float,
    result: Optional[ApplyResult] = None,
    error: Optional[Exception] = None,
) -> Optional[uuid.UUID]:
    """Persist one row per apply call. A failure here is logged, never raised."""
    requirements = body.function_params.get("requirements") if isinstance(body.function_params, dict) else None
    try:
        trace = AIFunctionTrace(
            function_name=function_name,
            org_id=body.background.org_id,
            project_id=body.background.project_id,
            user_id=body.background.user_id,
            requirement_count=len(requirements) if isinstance(requirements, list) else 0,
            need_adjust=body.need_adjust,
            status="Failed" if error is not None else "Completed",
            result_count=len(result.results) if result else 0,
            error_count=len(result.errors) if result else (1 if error is not None else 0),
            error_msg=str(error) if error is not None else None,
            function_params=body.function_params,
            duration_seconds=round(time.monotonic() - started, 3),
        )
        db.add(trace)
        db.commit()
        db.refresh(trace)
        return trace.id
    except Exception as e:
        logger.warning("ai_functions: failed to record trace for %s: %s", function_name, e)
        try:
            db.rollback()
        except Exception:
            logger.debug("ai_functions: rollback after trace failure also failed", exc_info=True)
        return None


@router.post("/{function_name}/actions/apply", response_model=ApplyResponse, response_model_exclude_none=True)
def apply_ai_function(
    function_name: str,
    body: ApplyRequest,
    db: Session = Depends(get_db),
    bundle: AutoTestBundle = Depends(get_bundle),
    caller: FunctionCaller = Depends(get_caller),
) -> Dict[str, Any]:
    """
    Apply an AI function to a batch of requirements.

    The function named in the path wins over ``functionName`` in the body.
    """
    if body.function_name and body.function_name != function_name:
        logger.warning("ai_functions: body functionName=%s ignored, path names %s", body.function_name, function_name)

    started = time.monotonic()
    try:
        factory = get_function_factory(function_name)
        handler_cls = HANDLERS.get(function_name)
        if handler_cls is None:
            raise UnknownFunctionError(f"AI function {function_name} has no handler", operation="lookup function")
        handler = handler_cls(bundle, caller, factory=factory)
        result = handler.apply(body.function_params, body.background, need_adjust=body.need_adjust)
    except UnknownFunctionError as e:
        logger.warning("ai_functions: %s", e)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        logger.warning("ai_functions: invalid request for %s: %s", function_name, e)
        _record_trace(db, function_name, body, started, error=e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict())
    except AIFunctionError as e:
        logger.error("ai_functions: apply %s failed: %s", function_name, e)
        _record_trace(db, function_name, body, started, error=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.to_dict())
    except Exception as e:
        logger.exception("ai_functions: apply %s failed unexpectedly", function_name)
        _record_trace(db, function_name, body, started, error=e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=AIFunctionError(f"unexpected failure: {e!r}", operation="apply").to_dict(),
        )

    trace_id = _record_trace(db, function_name, body, started, result=result)
    content = result.to_response()
    if trace_id is not None:
        content["traceID"] = str(trace_id)
    return content


@router.get("/traces/{trace_id}", response_model=AIFunctionTraceSchema)
def get_ai_function_trace(trace_id: uuid.UUID, db: Session = Depends(get_db)):
    trace = db.query(AIFunctionTrace).filter(AIFunctionTrace.id == trace_id).first()
    if not trace:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trace not found")
    return trace
