"""Chat completion client for the AI advisor."""

from __future__ import annotations

import logging
from typing import Mapping, Protocol, Sequence

import httpx

from portal.domain.errors import UpstreamFailure

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class CompletionClient(Protocol):
	async def complete(self, system_prompt: str, messages: Sequence[Mapping[str, str]]) -> str:
		...


class AnthropicCompletionClient:
	"""Call the Anthropic Messages API over httpx and return the first text block."""

	def __init__(
		self,
		api_key: str,
		*,
		model: str,
		max_tokens: int = 1024,
		base_url: str = "https://api.anthropic.com",
		timeout: float = 60.0,
		transport: httpx.AsyncBaseTransport | None = None,
	) -> None:
		self.model = model
		self.max_tokens = max_tokens
		self._http = httpx.AsyncClient(
			base_url=base_url,
			timeout=timeout,
			transport=transport,
			headers={
				"x-api-key": api_key,
				"anthropic-version": ANTHROPIC_VERSION,
				"content-type": "application/json",
			},
		)

	async def aclose(self) -> None:
		await self._http.aclose()

	async def complete(self, system_prompt: str, messages: Sequence[Mapping[str, str]]) -> str:
		body = {
			"model": self.model,
			"max_tokens": self.max_tokens,
			"system": system_prompt,
			"messages": [dict(m) for m in messages],
		}
		try:
			resp = await self._http.post("/v1/messages", json=body)
			resp.raise_for_status()
			data = resp.json()
		except httpx.HTTPError as exc:
			logger.warning("chat completion request failed: %s", exc)
			raise UpstreamFailure("chat_failed", "Failed to get AI response", details=str(exc)) from exc
		except ValueError as exc:
			logger.warning("chat completion returned a non-JSON body: %s", exc)
			raise UpstreamFailure("chat_failed", "Failed to get AI response", details="invalid JSON in response") from exc
		if not isinstance(data, dict):
			raise UpstreamFailure("chat_failed", "Failed to get AI response", details="unexpected response shape")
		blocks = data.get("content") or []
		if not isinstance(blocks, list):
			blocks = []
		for block in blocks:
			if isinstance(block, dict) and block.get("type") == "text":
				return str(block.get("text", ""))
		raise UpstreamFailure("chat_failed", "Failed to get AI response", details="no text content in response")
