"""
Chat Router - POST /api/chat

Thin HTTP shell around ChatOrchestrator. Trims the caller's history to the
configured window, runs one chat turn and returns ``{"reply": ...}`` or
``{"error": ...}`` with the outcome's status code.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import runtime_config
from services.chat_orchestrator import ChatOrchestrator
from services.history import coerce_history
from utils.llm import get_chat_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    """Chat turn as sent by the browser client."""

    message: Any = None
    history: Any = None
    userId: Any = None


@router.post("/api/chat")
async def chat(request: ChatRequest, orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator)):
    raw_history = request.history if isinstance(request.history, list) else []
    history = coerce_history(raw_history, limit=runtime_config.history_limit)
    if request.userId:
        logger.debug(f"Chat turn for user {request.userId} ({len(history)} prior messages)")

    outcome = await orchestrator.handle(request.message, history)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
