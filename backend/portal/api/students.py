"""Student profile endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from portal.api.deps import get_record_store
from portal.domain.schemas import StudentUpdateRequest
from portal.domain.students import profile
from portal.infra.records import RecordStore

router = APIRouter(prefix="/student")


@router.get("/{email}")
async def get_student(email: str, store: RecordStore = Depends(get_record_store)) -> Dict[str, Any]:
	return await profile.get_hydrated_student(store, email)


@router.post("/update")
async def update_student(payload: StudentUpdateRequest, store: RecordStore = Depends(get_record_store)) -> Dict[str, Any]:
	student = await profile.update_student(store, payload.email, payload.updates)
	return {"success": True, "student": student}
