"""Magic-link token storage.

Two interchangeable stores share the ``TokenStore`` protocol: a process-local
dict (default) and a Redis-backed store for deployments that need tokens to
survive restarts or be shared. ``remove`` reports whether *this* caller deleted
the entry, which is what makes redemption single-use under concurrency.

The in-memory store never expires entries on its own; ``run_token_sweeper``
purges stale ones periodically so abandoned links do not accumulate.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Protocol

from portal.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Redis keeps entries a little past their logical expiry; redemption still
# checks expires_at itself.
REDIS_TTL_GRACE_SECONDS = 60


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MagicToken:
	value: str
	email: str
	expires_at: datetime

	def is_expired(self, now: datetime) -> bool:
		return now > self.expires_at


class TokenStore(Protocol):
	async def put(self, token: str, email: str, ttl: timedelta, *, now: Optional[datetime] = None) -> MagicToken:
		...

	async def peek(self, token: str) -> Optional[MagicToken]:
		...

	async def remove(self, token: str) -> bool:
		...


class InMemoryTokenStore:
	def __init__(self) -> None:
		self._tokens: Dict[str, MagicToken] = {}

	def __len__(self) -> int:
		return len(self._tokens)

	async def put(self, token: str, email: str, ttl: timedelta, *, now: Optional[datetime] = None) -> MagicToken:
		entry = MagicToken(value=token, email=email, expires_at=(now or utcnow()) + ttl)
		self._tokens[token] = entry
		return entry

	async def peek(self, token: str) -> Optional[MagicToken]:
		return self._tokens.get(token)

	async def remove(self, token: str) -> bool:
		return self._tokens.pop(token, None) is not None

	def purge_expired(self, now: Optional[datetime] = None) -> int:
		now = now or utcnow()
		stale = [key for key, entry in self._tokens.items() if entry.is_expired(now)]
		for key in stale:
			self._tokens.pop(key, None)
		return len(stale)


class RedisTokenStore:
	KEY = "auth:magic:{token}"

	def __init__(self, client) -> None:
		self._client = client

	def _key(self, token: str) -> str:
		return self.KEY.format(token=token)

	async def put(self, token: str, email: str, ttl: timedelta, *, now: Optional[datetime] = None) -> MagicToken:
		entry = MagicToken(value=token, email=email, expires_at=(now or utcnow()) + ttl)
		payload = json.dumps({"email": email, "expires_at": entry.expires_at.isoformat()})
		await self._client.set(self._key(token), payload, ex=int(ttl.total_seconds()) + REDIS_TTL_GRACE_SECONDS)
		return entry

	async def peek(self, token: str) -> Optional[MagicToken]:
		raw = await self._client.get(self._key(token))
		if not raw:
			return None
		data = json.loads(raw)
		return MagicToken(value=token, email=data["email"], expires_at=datetime.fromisoformat(data["expires_at"]))

	async def remove(self, token: str) -> bool:
		return int(await self._client.delete(self._key(token))) > 0


async def run_token_sweeper(store: InMemoryTokenStore, interval_s: float = 60, clock: Clock = utcnow) -> None:
	"""Periodically drop expired entries from the in-memory store."""
	interval = max(0.01, float(interval_s))
	while True:
		await asyncio.sleep(interval)
		try:
			purged = store.purge_expired(clock())
		except Exception:
			logger.exception("token sweeper iteration failed")
			continue
		if purged:
			logger.info("token sweeper removed %s expired magic links", purged)
			obs_metrics.MAGIC_LINKS_SWEPT.inc(purged)
