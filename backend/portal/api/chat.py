"""AI advisor chat endpoint."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from portal.api.deps import get_completion_client
from portal.domain.chat import service
from portal.domain.schemas import ChatRequest
from portal.infra.completions import CompletionClient

router = APIRouter()


@router.post("/chat")
async def chat(payload: ChatRequest, client: Optional[CompletionClient] = Depends(get_completion_client)) -> Dict[str, Any]:
	history = [turn.model_dump() for turn in payload.conversation_history or []]
	return await service.chat(
		client,
		payload.message,
		student_context=payload.student_context,
		history=history,
	)
