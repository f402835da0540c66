"""Magic-link issuance and delivery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from uuid import uuid4

from portal.domain.auth.tokens import Clock, TokenStore, utcnow
from portal.domain.errors import NotFound, UpstreamUnavailable
from portal.domain.students.lookup import find_student_by_email, first_name_of, normalise_email
from portal.infra.mailer import MAGIC_LINK_SUBJECT, Mailer, mask_email, render_magic_link_email
from portal.infra.records import Record, RecordStore
from portal.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=15)


@dataclass(frozen=True)
class MagicLinkResult:
	magic_link: str
	token: str
	email: str
	expires_at: datetime
	first_name: str


def build_link(base_url: str, token: str) -> str:
	parts = urlsplit(base_url)
	query = parse_qsl(parts.query, keep_blank_values=True)
	query.append(("token", token))
	return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


class MagicLinkIssuer:
	def __init__(
		self,
		store: RecordStore,
		tokens: TokenStore,
		*,
		base_url: str,
		ttl: timedelta = DEFAULT_TTL,
		clock: Clock = utcnow,
	) -> None:
		self.store = store
		self.tokens = tokens
		self.base_url = base_url
		self.ttl = ttl
		self.clock = clock

	async def resolve(self, email: Optional[str]) -> Tuple[str, Record]:
		"""Normalise the address and find its student, or raise."""
		normalised = normalise_email(email)
		record = await find_student_by_email(self.store, normalised)
		if record is None:
			obs_metrics.inc_auth_reject("unknown_email")
			raise NotFound("student_not_found", "No student found with this email")
		return normalised, record

	async def issue(self, email: Optional[str]) -> MagicLinkResult:
		normalised, record = await self.resolve(email)
		return await self.issue_for(normalised, record)

	async def issue_for(self, normalised: str, record: Record) -> MagicLinkResult:
		token = str(uuid4())
		entry = await self.tokens.put(token, normalised, self.ttl, now=self.clock())
		return MagicLinkResult(
			magic_link=build_link(self.base_url, token),
			token=token,
			email=normalised,
			expires_at=entry.expires_at,
			first_name=first_name_of(record),
		)


async def request_magic_link(
	issuer: MagicLinkIssuer,
	email: Optional[str],
	*,
	mailer: Optional[Mailer],
	dev_mode: bool,
) -> Dict[str, Any]:
	"""Issue a link and email it, or return it inline when running in dev mode without a mailer."""
	normalised, record = await issuer.resolve(email)
	if mailer is None and not dev_mode:
		raise UpstreamUnavailable("email_not_configured", "Email delivery is not configured")

	result = await issuer.issue_for(normalised, record)
	if mailer is not None:
		ttl_minutes = int(issuer.ttl.total_seconds() // 60)
		html = render_magic_link_email(result.first_name, result.magic_link, ttl_minutes)
		await mailer.send(result.email, MAGIC_LINK_SUBJECT, html)
		obs_metrics.inc_magic_link_issued("email")
		logger.info("magic link emailed", extra={"student_hash": mask_email(result.email)})
		return {"success": True, "message": "Magic link sent to your email"}

	obs_metrics.inc_magic_link_issued("dev_response")
	logger.warning("dev mode magic link for %s: %s", mask_email(result.email), result.magic_link)
	return {
		"success": True,
		"message": "Magic link generated",
		"devMode": True,
		"magicLink": result.magic_link,
	}
