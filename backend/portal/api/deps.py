"""FastAPI dependencies resolving collaborators from ``app.state``.

``main.lifespan`` wires the real implementations; tests replace them on
``app.state`` directly.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import Request

from portal.domain.auth.magic_link import MagicLinkIssuer
from portal.domain.auth.tokens import Clock, TokenStore, utcnow
from portal.domain.auth.verifier import LinkVerifier
from portal.domain.errors import UpstreamUnavailable
from portal.infra.completions import CompletionClient
from portal.infra.mailer import Mailer
from portal.infra.records import RecordStore
from portal.settings import Settings, settings as default_settings


def get_settings(request: Request) -> Settings:
	return getattr(request.app.state, "settings", None) or default_settings


def get_record_store(request: Request) -> RecordStore:
	store = getattr(request.app.state, "record_store", None)
	if store is None:
		raise UpstreamUnavailable("record_store_not_configured", "Record store is not configured")
	return store


def get_token_store(request: Request) -> TokenStore:
	return request.app.state.token_store


def get_mailer(request: Request) -> Optional[Mailer]:
	return getattr(request.app.state, "mailer", None)


def get_completion_client(request: Request) -> Optional[CompletionClient]:
	return getattr(request.app.state, "completion_client", None)


def get_clock(request: Request) -> Clock:
	return getattr(request.app.state, "clock", None) or utcnow


def build_issuer(request: Request) -> MagicLinkIssuer:
	cfg = get_settings(request)
	return MagicLinkIssuer(
		get_record_store(request),
		get_token_store(request),
		base_url=cfg.public_base_url(),
		ttl=timedelta(minutes=cfg.magic_link_ttl_minutes),
		clock=get_clock(request),
	)


def build_verifier(request: Request) -> LinkVerifier:
	return LinkVerifier(get_record_store(request), get_token_store(request), clock=get_clock(request))
