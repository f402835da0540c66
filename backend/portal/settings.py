"""Settings for the student portal backend."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


class Settings(BaseSettings):
	port: int = _env_field(3000, "PORT")
	app_url: Optional[str] = _env_field(None, "APP_URL")
	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
	service_name: str = _env_field("student-portal-api", "SERVICE_NAME")

	# Development switches. Both the dev-login bypass and returning magic links
	# in API responses require DEV_MODE=true explicitly.
	dev_mode: bool = _env_field(False, "DEV_MODE")
	dev_test_email: Optional[str] = _env_field(None, "DEV_TEST_EMAIL")

	# Record store (Airtable)
	airtable_pat: Optional[str] = _env_field(None, "AIRTABLE_PAT")
	airtable_base_id: Optional[str] = _env_field(None, "AIRTABLE_BASE_ID")
	record_store_timeout_seconds: float = _env_field(10.0, "RECORD_STORE_TIMEOUT_SECONDS")

	# Magic-link tokens
	token_store: str = _env_field("memory", "TOKEN_STORE")
	redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")
	token_sweep_interval_seconds: int = _env_field(60, "TOKEN_SWEEP_INTERVAL_SECONDS")
	magic_link_ttl_minutes: int = _env_field(15, "MAGIC_LINK_TTL_MINUTES")

	# Email Settings
	smtp_host: Optional[str] = _env_field(None, "SMTP_HOST")
	smtp_port: int = _env_field(587, "SMTP_PORT")
	smtp_user: Optional[str] = _env_field(None, "SMTP_USER")
	smtp_password: Optional[str] = _env_field(None, "SMTP_PASSWORD")
	smtp_tls: bool = _env_field(True, "SMTP_TLS")
	email_from: str = _env_field("WSG Portal <noreply@resend.dev>", "EMAIL_FROM", "SMTP_FROM_EMAIL")

	# AI chat
	anthropic_api_key: Optional[str] = _env_field(None, "ANTHROPIC_API_KEY")
	anthropic_model: str = _env_field("claude-sonnet-4-20250514", "ANTHROPIC_MODEL")
	anthropic_base_url: str = _env_field("https://api.anthropic.com", "ANTHROPIC_BASE_URL")
	chat_max_tokens: int = _env_field(1024, "CHAT_MAX_TOKENS")
	chat_timeout_seconds: float = _env_field(60.0, "CHAT_TIMEOUT_SECONDS")

	cors_allow_origins: Any = _env_field(("*",), "CORS_ALLOW_ORIGINS")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		extra="ignore",
	)

	@field_validator("cors_allow_origins", mode="before")
	def _split_cors(cls, value):  # type: ignore[override]
		if value in (None, ""):
			return ("*",)
		if isinstance(value, str):
			return tuple(part.strip() for part in value.split(",") if part.strip())
		if isinstance(value, (list, tuple, set)):
			return tuple(str(item).strip() for item in value if str(item).strip())
		return ("*",)

	# Environment helpers
	def public_base_url(self) -> str:
		return self.app_url or f"http://localhost:{self.port}"

	def has_record_store(self) -> bool:
		return bool(self.airtable_pat and self.airtable_base_id)

	def has_mailer(self) -> bool:
		return bool(self.smtp_host)

	def has_chat(self) -> bool:
		return bool(self.anthropic_api_key)


settings = Settings()
settings.obs_log_level = settings.obs_log_level.upper()
