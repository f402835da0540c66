"""FastAPI application entrypoint."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.api import auth, chat, mentors, ops, students
from portal.api.errors import install_error_handlers
from portal.domain.auth.tokens import InMemoryTokenStore, RedisTokenStore, TokenStore, run_token_sweeper
from portal.infra.completions import AnthropicCompletionClient, CompletionClient
from portal.infra.mailer import Mailer, SmtpMailer
from portal.infra.records import AirtableRecordStore, InMemoryRecordStore, RecordStore
from portal.infra.redis import redis_client
from portal.obs import init as obs_init
from portal.settings import Settings, settings

logger = logging.getLogger(__name__)


def build_record_store(cfg: Settings) -> Optional[RecordStore]:
	if cfg.has_record_store():
		return AirtableRecordStore(
			cfg.airtable_pat,  # type: ignore[arg-type]
			cfg.airtable_base_id,  # type: ignore[arg-type]
			timeout_seconds=cfg.record_store_timeout_seconds,
		)
	if cfg.dev_mode:
		logger.warning("AIRTABLE_PAT/AIRTABLE_BASE_ID missing; using an empty in-memory record store")
		return InMemoryRecordStore()
	return None


def build_token_store(cfg: Settings) -> TokenStore:
	if cfg.token_store.lower() == "redis":
		return RedisTokenStore(redis_client)
	return InMemoryTokenStore()


def build_mailer(cfg: Settings) -> Optional[Mailer]:
	if not cfg.has_mailer():
		return None
	return SmtpMailer(
		host=cfg.smtp_host,  # type: ignore[arg-type]
		port=cfg.smtp_port,
		from_email=cfg.email_from,
		username=cfg.smtp_user,
		password=cfg.smtp_password,
		tls=cfg.smtp_tls,
	)


def build_completion_client(cfg: Settings) -> Optional[CompletionClient]:
	if not cfg.has_chat():
		return None
	return AnthropicCompletionClient(
		cfg.anthropic_api_key,  # type: ignore[arg-type]
		model=cfg.anthropic_model,
		max_tokens=cfg.chat_max_tokens,
		base_url=cfg.anthropic_base_url,
		timeout=cfg.chat_timeout_seconds,
	)


def configure_state(app: FastAPI, cfg: Settings) -> None:
	app.state.settings = cfg
	app.state.record_store = build_record_store(cfg)
	app.state.token_store = build_token_store(cfg)
	app.state.mailer = build_mailer(cfg)
	app.state.completion_client = build_completion_client(cfg)


@asynccontextmanager
async def lifespan(app: FastAPI):
	configure_state(app, settings)
	logger.info(
		"environment check",
		extra={
			"port": settings.port,
			"has_record_store": settings.has_record_store(),
			"has_mailer": settings.has_mailer(),
			"has_chat": settings.has_chat(),
			"dev_mode": settings.dev_mode,
			"token_store": settings.token_store,
		},
	)
	sweeper: Optional[asyncio.Task] = None
	if isinstance(app.state.token_store, InMemoryTokenStore):
		sweeper = asyncio.create_task(
			run_token_sweeper(app.state.token_store, settings.token_sweep_interval_seconds),
			name="magic-link-sweeper",
		)
	try:
		yield
	finally:
		if sweeper is not None:
			sweeper.cancel()
			await asyncio.gather(sweeper, return_exceptions=True)
		client = app.state.completion_client
		if isinstance(client, AnthropicCompletionClient):
			await client.aclose()


app = FastAPI(title="WSG Student Portal API", lifespan=lifespan)
install_error_handlers(app)

# Starlette disallows wildcard '*' with allow_credentials=True.
allow_origins = list(settings.cors_allow_origins)
app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials="*" not in allow_origins,
	allow_methods=["*"],
	allow_headers=["*"],
	expose_headers=["X-Request-Id"],
)
obs_init(app)

app.include_router(auth.router, tags=["auth"])
app.include_router(students.router, tags=["students"])
app.include_router(mentors.router, tags=["mentors"])
app.include_router(chat.router, tags=["chat"])
app.include_router(ops.router)
