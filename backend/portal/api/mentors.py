"""Mentor directory endpoint."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from portal.api.deps import get_record_store
from portal.domain.students.mentors import list_active_mentors
from portal.infra.records import RecordStore

router = APIRouter()


@router.get("/mentors")
async def mentors(store: RecordStore = Depends(get_record_store)) -> Dict[str, Any]:
	return {"mentors": await list_active_mentors(store)}
