"""Global error handlers translating failures into structured JSON bodies."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.api.request_id import get_request_id
from portal.domain.errors import PortalError, UpstreamFailure

logger = logging.getLogger(__name__)


def error_payload(request: Request, exc: PortalError) -> dict:
	payload = {"error": exc.message, "detail": exc.reason, "request_id": get_request_id(request)}
	if isinstance(exc, UpstreamFailure) and exc.details:
		payload["details"] = exc.details
	return payload


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(PortalError)
	async def portal_exc_handler(request: Request, exc: PortalError):  # type: ignore[override]
		if exc.status_code >= 500:
			logger.error("request failed", extra={"reason": exc.reason, "status": exc.status_code})
		return JSONResponse(status_code=exc.status_code, content=error_payload(request, exc))

	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		payload = {"error": exc.detail, "detail": exc.detail, "request_id": get_request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=payload)

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		payload = {
			"error": "Invalid request body",
			"detail": "validation_error",
			"errors": jsonable_errors(exc),
			"request_id": get_request_id(request),
		}
		return JSONResponse(status_code=400, content=payload)

	@app.exception_handler(Exception)
	async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
		logger.error("unhandled error", exc_info=exc, extra={"error_type": type(exc).__name__})
		payload = {"error": "Internal server error", "detail": "internal_error", "request_id": get_request_id(request)}
		return JSONResponse(status_code=500, content=payload)


def jsonable_errors(exc: RequestValidationError) -> list:
	return [
		{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
		for err in exc.errors()
	]
