"""Error taxonomy shared by the auth, student, and chat flows.

Each error carries a machine-readable ``reason``, a human ``message`` for the
JSON body, and the HTTP status the request boundary maps it to.
"""

from __future__ import annotations

from typing import Optional


class PortalError(Exception):
	"""Base error with an HTTP status mapping."""

	status_code = 500

	def __init__(self, reason: str, message: Optional[str] = None, *, status_code: Optional[int] = None):
		super().__init__(message or reason)
		self.reason = reason
		self.message = message or reason
		if status_code is not None:
			self.status_code = status_code


class ValidationError(PortalError):
	"""Missing or malformed required input."""

	status_code = 400


class NotFound(PortalError):
	"""Unknown email or record."""

	status_code = 404


class Unauthorized(PortalError):
	"""Invalid, expired, or already redeemed magic-link token."""

	status_code = 401


class Forbidden(PortalError):
	"""Development-only path called while development mode is off."""

	status_code = 403


class UpstreamUnavailable(PortalError):
	"""A collaborator (email delivery, chat) is not configured."""

	status_code = 503


class UpstreamFailure(PortalError):
	"""A configured collaborator failed; surfaced, never retried."""

	status_code = 500

	def __init__(self, reason: str, message: Optional[str] = None, *, details: Optional[str] = None):
		super().__init__(reason, message)
		self.details = details
