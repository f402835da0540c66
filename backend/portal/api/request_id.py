"""Request ID helper for endpoints and error handlers."""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from portal.obs import logging as obs_logging


def get_request_id(request: Optional[Request] = None, default: str = "unknown") -> str:
	"""Return the id bound by the observability middleware, else a default."""
	if request is not None:
		rid = getattr(request.state, "request_id", None)
		if rid:
			return rid
	return obs_logging.current_request_id() or default
