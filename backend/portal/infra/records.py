"""Record store client for the Airtable base holding students and mentors.

The rest of the backend only talks to the ``RecordStore`` protocol. Filters are
value objects rendered through pyairtable's quoting helpers, so user input such
as an email address never reaches the formula language unescaped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence
from uuid import uuid4

import requests
from pyairtable import Api
from pyairtable.formulas import field_name, quoted

from portal.domain.errors import UpstreamFailure

logger = logging.getLogger(__name__)

STUDENTS = "Students"
MENTORS = "Mentors"
MEETINGS = "Student-Mentor Meetings"

Record = Dict[str, Any]


class RecordFilter(Protocol):
	def to_formula(self) -> str:
		...

	def matches(self, fields: Mapping[str, Any]) -> bool:
		...


@dataclass(frozen=True)
class FieldEquals:
	"""``{field} = value``; optionally compared after trim + lowercase on both sides."""

	field: str
	value: str
	case_insensitive: bool = False

	def _expected(self) -> str:
		return self.value.strip().lower() if self.case_insensitive else self.value

	def to_formula(self) -> str:
		ref = field_name(self.field)
		if self.case_insensitive:
			ref = f"LOWER(TRIM({ref}))"
		return f"{ref} = {quoted(self._expected())}"

	def matches(self, fields: Mapping[str, Any]) -> bool:
		actual = fields.get(self.field)
		if actual is None:
			return False
		actual = str(actual)
		if self.case_insensitive:
			actual = actual.strip().lower()
		return actual == self._expected()


@dataclass(frozen=True)
class AllOf:
	filters: Sequence[RecordFilter]

	def to_formula(self) -> str:
		if len(self.filters) == 1:
			return self.filters[0].to_formula()
		return "AND(" + ", ".join(f.to_formula() for f in self.filters) + ")"

	def matches(self, fields: Mapping[str, Any]) -> bool:
		return all(f.matches(fields) for f in self.filters)


class RecordStore(Protocol):
	async def find(
		self,
		collection: str,
		record_filter: Optional[RecordFilter] = None,
		*,
		limit: Optional[int] = None,
		sort: Optional[Sequence[str]] = None,
	) -> List[Record]:
		...

	async def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
		...

	async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> Record:
		...


class AirtableRecordStore:
	"""pyairtable-backed store. Calls run in a worker thread under a timeout."""

	def __init__(self, api_key: str, base_id: str, *, timeout_seconds: float = 10.0) -> None:
		self._api = Api(api_key, timeout=(timeout_seconds, timeout_seconds), retry_strategy=False)
		self._base_id = base_id
		self._timeout = timeout_seconds

	def _table(self, collection: str):
		return self._api.table(self._base_id, collection)

	async def _call(self, op: str, collection: str, fn, *args, **kwargs):
		try:
			return await asyncio.wait_for(asyncio.to_thread(fn, *args, **kwargs), timeout=self._timeout)
		except asyncio.TimeoutError:
			logger.warning("record store %s timed out", op, extra={"collection": collection})
			raise UpstreamFailure("record_store_timeout", "Record store request timed out") from None
		except requests.RequestException as exc:
			logger.warning("record store %s failed", op, extra={"collection": collection, "error": str(exc)})
			raise UpstreamFailure("record_store_error", "Record store request failed", details=str(exc)) from exc

	async def find(self, collection, record_filter=None, *, limit=None, sort=None):
		kwargs: Dict[str, Any] = {}
		if record_filter is not None:
			kwargs["formula"] = record_filter.to_formula()
		if limit is not None:
			kwargs["max_records"] = limit
		if sort:
			kwargs["sort"] = list(sort)
		return await self._call("find", collection, self._table(collection).all, **kwargs)

	async def find_by_id(self, collection, record_id):
		table = self._table(collection)

		def _get():
			try:
				return table.get(record_id)
			except requests.HTTPError as exc:
				if exc.response is not None and exc.response.status_code == 404:
					return None
				raise

		return await self._call("find_by_id", collection, _get)

	async def update(self, collection, record_id, fields):
		return await self._call("update", collection, self._table(collection).update, record_id, dict(fields))


class InMemoryRecordStore:
	"""Dict-backed store for tests and local runs without Airtable credentials."""

	def __init__(self) -> None:
		self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

	def add(self, collection: str, fields: Mapping[str, Any], *, record_id: Optional[str] = None) -> Record:
		record_id = record_id or f"rec{uuid4().hex[:14]}"
		self._collections.setdefault(collection, {})[record_id] = dict(fields)
		return {"id": record_id, "fields": dict(fields)}

	def remove(self, collection: str, record_id: str) -> None:
		self._collections.get(collection, {}).pop(record_id, None)

	async def find(self, collection, record_filter=None, *, limit=None, sort=None):
		rows = [
			{"id": record_id, "fields": dict(fields)}
			for record_id, fields in self._collections.get(collection, {}).items()
			if record_filter is None or record_filter.matches(fields)
		]
		for key in reversed(list(sort or [])):
			rows.sort(key=lambda row: str(row["fields"].get(key) or ""))
		if limit is not None:
			rows = rows[:limit]
		return rows

	async def find_by_id(self, collection, record_id):
		fields = self._collections.get(collection, {}).get(record_id)
		if fields is None:
			return None
		return {"id": record_id, "fields": dict(fields)}

	async def update(self, collection, record_id, fields):
		existing = self._collections.get(collection, {}).get(record_id)
		if existing is None:
			raise UpstreamFailure("record_store_error", "Record store request failed", details=f"{record_id} not found")
		existing.update(fields)
		return {"id": record_id, "fields": dict(existing)}
