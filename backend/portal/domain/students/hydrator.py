"""Resolve a student's linked mentors and meetings into nested objects.

Every link is fetched fresh on each call. Links that cannot be resolved
(deleted upstream, store error, timeout) are left out of the result; they never
fail the hydration as a whole.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from portal.domain.errors import PortalError
from portal.infra.records import MEETINGS, MENTORS, Record, RecordStore
from portal.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

RECRUITMENT_MANAGER = "Recruitment Manager"
LEAD_MENTOR = "Lead Mentor"
MEETING_LINKS = "Student-Mentor Meetings"
MENTORS_ATTENDED = "Mentors Attended"


def _first_link(fields: Dict[str, Any], key: str) -> Optional[str]:
	ids = fields.get(key)
	if isinstance(ids, (list, tuple)) and ids:
		return str(ids[0])
	return None


async def _safe_fetch(store: RecordStore, collection: str, record_id: str, kind: str) -> Optional[Record]:
	try:
		record = await store.find_by_id(collection, record_id)
	except PortalError as exc:
		logger.warning("hydration lookup failed", extra={"kind": kind, "record_id": record_id, "reason": exc.reason})
		record = None
	except Exception as exc:
		logger.warning("hydration lookup raised", extra={"kind": kind, "record_id": record_id, "error": repr(exc)})
		record = None
	if record is None:
		obs_metrics.inc_hydration_miss(kind)
	return record


async def get_mentor(store: RecordStore, mentor_id: str) -> Optional[Dict[str, Any]]:
	record = await _safe_fetch(store, MENTORS, mentor_id, "mentor")
	if record is None:
		return None
	fields = record.get("fields") or {}
	return {"id": record["id"], "name": fields.get("Name"), **fields}


async def get_meeting(store: RecordStore, meeting_id: str) -> Optional[Dict[str, Any]]:
	record = await _safe_fetch(store, MEETINGS, meeting_id, "meeting")
	if record is None:
		return None
	meeting: Dict[str, Any] = {"id": record["id"], **(record.get("fields") or {})}
	mentor_id = _first_link(meeting, MENTORS_ATTENDED)
	if mentor_id:
		mentor = await get_mentor(store, mentor_id)
		if mentor is not None:
			meeting["mentorAttended"] = mentor
	return meeting


async def _optional_mentor(store: RecordStore, mentor_id: Optional[str]) -> Optional[Dict[str, Any]]:
	if not mentor_id:
		return None
	return await get_mentor(store, mentor_id)


async def _meetings(store: RecordStore, meeting_ids: Sequence[str]) -> List[Dict[str, Any]]:
	# gather keeps input order regardless of completion order
	results = await asyncio.gather(
		*(get_meeting(store, str(mid)) for mid in meeting_ids),
		return_exceptions=True,
	)
	meetings: List[Dict[str, Any]] = []
	for meeting_id, result in zip(meeting_ids, results):
		if isinstance(result, BaseException):
			logger.warning("meeting hydration raised", extra={"record_id": meeting_id, "error": repr(result)})
			obs_metrics.inc_hydration_miss("meeting")
			continue
		if result is not None:
			meetings.append(result)
	return meetings


async def hydrate(store: RecordStore, record: Record) -> Dict[str, Any]:
	fields = dict(record.get("fields") or {})
	student: Dict[str, Any] = {"id": record["id"], **fields}

	meeting_ids = fields.get(MEETING_LINKS) or []
	if not isinstance(meeting_ids, (list, tuple)):
		meeting_ids = []

	recruitment_manager, lead_mentor, meetings = await asyncio.gather(
		_optional_mentor(store, _first_link(fields, RECRUITMENT_MANAGER)),
		_optional_mentor(store, _first_link(fields, LEAD_MENTOR)),
		_meetings(store, list(meeting_ids)),
		return_exceptions=True,
	)
	if isinstance(recruitment_manager, dict):
		student["recruitmentManager"] = recruitment_manager
	if isinstance(lead_mentor, dict):
		student["leadMentor"] = lead_mentor
	student["meetings"] = meetings if isinstance(meetings, list) else []
	return student
