"""Directory of active mentors for the Find a Mentor page."""

from __future__ import annotations

from typing import Any, Dict, List

from portal.infra.records import MENTORS, FieldEquals, Record, RecordStore

ACTIVE_FILTER = FieldEquals("Mentor Active Status", "Active")

_FIELD_MAP = (
	("name", "Name"),
	("headshot", "Headshot"),
	("company", "Current/Upcoming Company"),
	("jobTitle", "Job Title"),
	("industry", "Industry/Sector & Group"),
	("education", "Education"),
	("degree", "Degree"),
	("graduationYear", "Graduation Year"),
	("location", "Location"),
	("type", "Type of Mentor"),
	("linkedin", "LinkedIn"),
	("skills", "Skills"),
	("previousExperience", "Previous Experience"),
	("otherOffers", "What other offers did you receive?"),
)


def _intro(fields: Dict[str, Any]) -> Any:
	intro = fields.get("Mentor Intro")
	if intro:
		return intro
	# AI-generated fields come back as {"state", "value", "isStale"}
	generated = fields.get("AI Mentor Intro")
	if isinstance(generated, dict):
		return generated.get("value")
	return None


def project_mentor(record: Record) -> Dict[str, Any]:
	fields = record.get("fields") or {}
	out: Dict[str, Any] = {"id": record["id"]}
	for key, source in _FIELD_MAP:
		out[key] = fields.get(source)
	out["intro"] = _intro(fields)
	return out


async def list_active_mentors(store: RecordStore) -> List[Dict[str, Any]]:
	records = await store.find(MENTORS, ACTIVE_FILTER, sort=["Name"])
	return [project_mentor(record) for record in records]
