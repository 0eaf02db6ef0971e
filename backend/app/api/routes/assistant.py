"""Assistant API routes."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.schemas.assistant import AssistantExecuteRequest, AssistantResponse
from app.core.config import settings
from app.core.context import user_id_ctx_var
from app.db.deps import get_db
from app.services.assistant_pipeline import (
    AssistantRequestError,
    confirm_instructions,
    propose_instructions,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/assistant/execute",
    response_model=AssistantResponse,
    response_model_exclude_none=True,
    tags=["assistant"],
)
def execute_assistant(
    request: AssistantExecuteRequest,
    http_request: Request,
    db: Session = Depends(get_db),
):
    """Preview the instructions for a query, or execute previously previewed ones."""
    request_id = getattr(http_request.state, "request_id", None)
    token = user_id_ctx_var.set(str(request.user_id))
    try:
        if request.confirm:
            return confirm_instructions(
                db,
                user_id=request.user_id,
                pending_actions=request.pending_actions,
                user_choices=request.user_choices,
                locale=request.locale,
                request_id=request_id,
            )
        context_instructions = request.context_instructions if isinstance(request.context_instructions, list) else None
        return propose_instructions(
            db,
            user_id=request.user_id,
            query=request.query,
            context_instructions=context_instructions,
            locale=request.locale,
            request_id=request_id,
        )
    except AssistantRequestError as exc:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("Assistant request failed")
        content: Dict[str, Any] = {"error": "Internal server error", "message": str(exc)}
        if not settings.is_production:
            content["details"] = repr(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
    finally:
        user_id_ctx_var.reset(token)
