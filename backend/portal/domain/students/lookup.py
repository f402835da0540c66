"""Student lookup by email."""

from __future__ import annotations

from typing import Any, Dict, Optional

from portal.domain.errors import ValidationError
from portal.infra.records import STUDENTS, FieldEquals, Record, RecordStore

EMAIL_FIELD = "Student's Email"


def normalise_email(email: Optional[str]) -> str:
	if not isinstance(email, str) or not email.strip():
		raise ValidationError("email_required", "Email is required")
	return email.strip().lower()


def email_filter(normalised: str) -> FieldEquals:
	return FieldEquals(EMAIL_FIELD, normalised, case_insensitive=True)


async def find_student_by_email(store: RecordStore, email: str) -> Optional[Record]:
	"""Return the single student whose email matches, ignoring case and padding."""
	records = await store.find(STUDENTS, email_filter(normalise_email(email)), limit=1)
	return records[0] if records else None


def first_name_of(record: Record) -> str:
	fields = record.get("fields") or {}
	preferred = fields.get("Preferred First Name")
	if preferred:
		return str(preferred)
	name = str(fields.get("Name") or "").strip()
	if name:
		return name.split(" ")[0]
	return "there"


def identity_projection(record: Record) -> Dict[str, Any]:
	fields = record.get("fields") or {}
	return {
		"id": record["id"],
		"email": fields.get(EMAIL_FIELD),
		"name": fields.get("Name") or fields.get("Student ID"),
		"firstName": fields.get("Preferred First Name"),
	}
