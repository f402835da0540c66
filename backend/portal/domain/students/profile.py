"""Student profile reads and allow-listed updates."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from portal.domain.errors import NotFound, ValidationError
from portal.domain.students import hydrator
from portal.domain.students.lookup import find_student_by_email, normalise_email
from portal.infra.records import STUDENTS, RecordStore

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
	"Current University / Institution",
	"Degree / Major",
	"Graduation Year",
	"GPA",
	"Current Clubs / Extracurriculars",
	"CV/Resume",
	"Short-Term Goals (1-3 Years)",
	"What countries do you own a passport?",
)


def filter_updates(updates: Mapping[str, Any]) -> Dict[str, Any]:
	"""Keep allow-listed, non-null values. An empty string clears a text field."""
	allowed = {field: updates[field] for field in EDITABLE_FIELDS if field in updates and updates[field] is not None}
	dropped = sorted(set(updates) - set(EDITABLE_FIELDS))
	if dropped:
		logger.debug("ignoring non-editable fields", extra={"fields": dropped})
	return allowed


async def get_hydrated_student(store: RecordStore, email: Optional[str]) -> Dict[str, Any]:
	record = await find_student_by_email(store, normalise_email(email))
	if record is None:
		raise NotFound("student_not_found", "Student not found")
	return await hydrator.hydrate(store, record)


async def update_student(store: RecordStore, email: Optional[str], updates: Any) -> Dict[str, Any]:
	normalised = normalise_email(email)
	if not isinstance(updates, Mapping):
		raise ValidationError("updates_required", "Updates object is required")

	record = await find_student_by_email(store, normalised)
	if record is None:
		raise NotFound("student_not_found", "Student not found")

	fields = filter_updates(updates)
	if fields:
		updated = await store.update(STUDENTS, record["id"], fields)
	else:
		updated = await store.find_by_id(STUDENTS, record["id"]) or record
	logger.info("student profile updated", extra={"record_id": record["id"], "fields": sorted(fields)})
	return await hydrator.hydrate(store, updated)
