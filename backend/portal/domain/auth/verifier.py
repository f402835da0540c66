"""One-time redemption of magic-link tokens."""

from __future__ import annotations

import logging
from typing import Optional

from portal.domain.auth.sessions import AuthResult, mint_session
from portal.domain.auth.tokens import Clock, TokenStore, utcnow
from portal.domain.errors import NotFound, Unauthorized, ValidationError
from portal.domain.students.lookup import find_student_by_email, identity_projection
from portal.infra.records import RecordStore
from portal.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class LinkVerifier:
	def __init__(self, store: RecordStore, tokens: TokenStore, *, clock: Clock = utcnow) -> None:
		self.store = store
		self.tokens = tokens
		self.clock = clock

	async def redeem(self, token: Optional[str]) -> AuthResult:
		if not isinstance(token, str) or not token:
			raise ValidationError("token_required", "Token is required")

		entry = await self.tokens.peek(token)
		if entry is None:
			obs_metrics.inc_redemption("invalid")
			raise Unauthorized("invalid_token", "Invalid or expired link")

		now = self.clock()
		if entry.is_expired(now):
			await self.tokens.remove(token)
			obs_metrics.inc_redemption("expired")
			raise Unauthorized("expired_token", "Link has expired. Please request a new one.")

		# Consume before anything else; a concurrent redeemer that lost the
		# delete must not get a session.
		if not await self.tokens.remove(token):
			obs_metrics.inc_redemption("invalid")
			raise Unauthorized("invalid_token", "Invalid or expired link")

		record = await find_student_by_email(self.store, entry.email)
		if record is None:
			obs_metrics.inc_redemption("student_missing")
			raise NotFound("student_not_found", "Student not found")

		obs_metrics.inc_redemption("ok")
		session = mint_session(now, path="magic_link")
		logger.info("magic link redeemed", extra={"record_id": record["id"]})
		return AuthResult(session=session, student=identity_projection(record))
