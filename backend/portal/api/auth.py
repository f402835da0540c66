"""Magic-link authentication endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from portal.api.deps import build_issuer, build_verifier, get_clock, get_mailer, get_record_store, get_settings
from portal.domain.auth import sessions
from portal.domain.auth.magic_link import MagicLinkIssuer, request_magic_link
from portal.domain.auth.verifier import LinkVerifier
from portal.domain.errors import ValidationError
from portal.domain.schemas import DevLoginRequest, MagicLinkRequest, VerifyRequest
from portal.infra.mailer import Mailer
from portal.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@router.post("/magic-link")
async def magic_link(
	payload: MagicLinkRequest,
	issuer: MagicLinkIssuer = Depends(build_issuer),
	mailer: Optional[Mailer] = Depends(get_mailer),
	cfg: Settings = Depends(get_settings),
) -> Dict[str, Any]:
	return await request_magic_link(issuer, payload.email, mailer=mailer, dev_mode=cfg.dev_mode)


async def _optional_json(request: Request) -> Dict[str, Any]:
	raw = await request.body()
	if not raw:
		return {}
	try:
		data = json.loads(raw)
	except ValueError:
		raise ValidationError("invalid_json", "Request body must be JSON") from None
	return data if isinstance(data, dict) else {}


@router.post("/dev-login")
async def dev_login(request: Request, cfg: Settings = Depends(get_settings)) -> Dict[str, Any]:
	# The flag check runs before the body or the store are touched.
	sessions.ensure_dev_login_enabled(cfg.dev_mode)
	try:
		payload = DevLoginRequest.model_validate(await _optional_json(request))
	except PydanticValidationError:
		raise ValidationError("invalid_email", "Email must be a string") from None
	result = await sessions.dev_login(
		get_record_store(request),
		payload.email,
		enabled=True,
		default_email=cfg.dev_test_email,
		clock=get_clock(request),
	)
	return result.to_dict()


@router.post("/verify")
async def verify(payload: VerifyRequest, verifier: LinkVerifier = Depends(build_verifier)) -> Dict[str, Any]:
	result = await verifier.redeem(payload.token)
	return result.to_dict()
