"""Session minting and the development login bypass.

Sessions are stateless bearer credentials: nothing is recorded server-side, and
checking a session on later requests is left to whoever consumes the token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import uuid4

from portal.domain.auth.tokens import Clock, utcnow
from portal.domain.errors import Forbidden, NotFound
from portal.domain.students.lookup import find_student_by_email, identity_projection, normalise_email
from portal.infra.mailer import mask_email
from portal.infra.records import RecordStore
from portal.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(days=6 * 30)
DEFAULT_DEV_EMAIL = "test@example.com"


@dataclass(frozen=True)
class Session:
	token: str
	expires_at: datetime

	def to_dict(self) -> Dict[str, Any]:
		return {"token": self.token, "expiresAt": int(self.expires_at.timestamp() * 1000)}


@dataclass(frozen=True)
class AuthResult:
	session: Session
	student: Dict[str, Any]

	def to_dict(self) -> Dict[str, Any]:
		return {"success": True, "session": self.session.to_dict(), "student": self.student}


def ensure_dev_login_enabled(enabled: bool) -> None:
	if not enabled:
		obs_metrics.inc_auth_reject("dev_login_disabled")
		raise Forbidden("dev_login_disabled", "Dev login not available in production")


def mint_session(now: Optional[datetime] = None, *, path: str = "magic_link") -> Session:
	session = Session(token=str(uuid4()), expires_at=(now or utcnow()) + SESSION_TTL)
	obs_metrics.inc_session_minted(path)
	return session


async def dev_login(
	store: RecordStore,
	email: Optional[str],
	*,
	enabled: bool,
	default_email: Optional[str] = None,
	clock: Clock = utcnow,
) -> AuthResult:
	"""Mint a session for a student without a magic link. Requires DEV_MODE."""
	ensure_dev_login_enabled(enabled)
	normalised = normalise_email(email or default_email or DEFAULT_DEV_EMAIL)
	record = await find_student_by_email(store, normalised)
	if record is None:
		raise NotFound("student_not_found", f"No student found with email: {normalised}")

	session = mint_session(clock(), path="dev_login")
	logger.warning("dev login issued session", extra={"student_hash": mask_email(normalised)})
	return AuthResult(session=session, student=identity_projection(record))
