"""Operations endpoints: health and Prometheus metrics."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["ops"])


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
	state = request.app.state
	return {
		"status": "ok",
		"timestamp": datetime.now(timezone.utc).isoformat(),
		"hasRecordStore": getattr(state, "record_store", None) is not None,
		"hasMailer": getattr(state, "mailer", None) is not None,
		"hasChat": getattr(state, "completion_client", None) is not None,
	}


@router.get("/metrics")
async def metrics() -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
