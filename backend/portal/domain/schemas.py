"""Request bodies for the public API.

Required fields are declared optional here so that a missing value surfaces as
the domain's own 400 error rather than a generic validation failure.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MagicLinkRequest(BaseModel):
	email: Optional[str] = None


class DevLoginRequest(BaseModel):
	email: Optional[str] = None


class VerifyRequest(BaseModel):
	token: Optional[str] = None


class StudentUpdateRequest(BaseModel):
	email: Optional[str] = None
	updates: Any = None


class ChatTurn(BaseModel):
	role: Literal["user", "assistant"]
	content: str


class ChatRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	message: Optional[str] = None
	student_context: Optional[Dict[str, Any]] = Field(default=None, alias="studentContext")
	conversation_history: Optional[List[ChatTurn]] = Field(default=None, alias="conversationHistory")
