"""Pass-through chat with the AI advisor."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from portal.domain.chat.prompt import build_system_prompt
from portal.domain.errors import UpstreamFailure, UpstreamUnavailable, ValidationError
from portal.infra.completions import CompletionClient
from portal.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


async def chat(
	client: Optional[CompletionClient],
	message: Optional[str],
	*,
	student_context: Optional[Mapping[str, Any]] = None,
	history: Optional[Sequence[Mapping[str, str]]] = None,
) -> Dict[str, Any]:
	if client is None:
		raise UpstreamUnavailable("chat_not_configured", "AI service not configured. Please add ANTHROPIC_API_KEY to .env")
	if not message:
		raise ValidationError("message_required", "Message is required")

	messages: List[Dict[str, str]] = [{"role": m["role"], "content": m["content"]} for m in history or []]
	messages.append({"role": "user", "content": message})

	try:
		reply = await client.complete(build_system_prompt(student_context), messages)
	except UpstreamFailure:
		obs_metrics.inc_chat_completion("error")
		raise
	obs_metrics.inc_chat_completion("ok")
	logger.info("chat completion returned", extra={"turns": len(messages)})
	return {"success": True, "message": reply}
