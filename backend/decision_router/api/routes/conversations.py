"""Conversations: start a routing session and answer its questions.

Invariants:
    - Bodies are validated by Pydantic before reaching the handler
    - A rejected answer returns 400 with the full ConversationResponse (error
      INVALID_INPUT plus the rephrased question), not the error envelope
    - Session/spec errors propagate as DecisionRouterError to the global handler
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from decision_router.api.dependencies import get_conversation_service
from decision_router.schemas.conversation import (
    ConversationResponse, NextRequest, StartRequest,
)
from decision_router.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@router.post(
    "", response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_conversation(
    request: Request,
    body: StartRequest | None = None,
    service: ConversationService = Depends(get_conversation_service),
):
    """Start a session and return the first question (or an immediate outcome)."""
    spec_id = body.spec_id if body else None
    return await service.start(spec_id, base_url=_base_url(request))


@router.post("/{session_id}/next", response_model=ConversationResponse)
async def next_answer(
    session_id: str,
    body: NextRequest,
    request: Request,
    service: ConversationService = Depends(get_conversation_service),
):
    """Submit one answer; returns the next question or the final outcome."""
    response = await service.next(
        session_id,
        body.user_input,
        selected_option_ids=body.selected_option_ids,
        selected_option_texts=body.selected_option_texts,
        base_url=_base_url(request),
    )
    if response.error is not None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=response.model_dump(mode="json"),
        )
    return response
