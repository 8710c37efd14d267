from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from worklog.core.errors import WorklogError
from worklog.core.identity import Caller
from worklog.database import SessionLocal
from worklog.deps.auth import require_auth
from worklog.schemas.project import AssignedProjectResponse
from worklog.schemas.time_entry import (
    AdjustStartTimeRequest,
    StartEntryRequest,
    StartEntryResponse,
    TimeEntryResponse,
)
from worklog.services import time_entry_service

router = APIRouter(
    prefix="/time_entries",
    tags=["Time Entries"],
)


@router.get("", response_model=list[TimeEntryResponse])
def list_time_entries(
    range_filter: Literal["today", "week", "month"] = Query(default="today", alias="range"),
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return time_entry_service.list_entries(caller.user_id, range_filter, db=db)
    finally:
        db.close()


@router.get("/active", response_model=TimeEntryResponse)
def get_active_time_entry(caller: Caller = Depends(require_auth)):
    db = SessionLocal()
    try:
        entry = time_entry_service.get_active_entry(caller.user_id, db=db)
        if entry is None:
            raise HTTPException(status_code=404, detail="No active time entry")
        return entry
    finally:
        db.close()


@router.get("/projects", response_model=list[AssignedProjectResponse])
def list_assigned_projects(caller: Caller = Depends(require_auth)):
    db = SessionLocal()
    try:
        return time_entry_service.list_assigned_projects(caller.user_id, db=db)
    finally:
        db.close()


@router.post("/start", response_model=StartEntryResponse)
def start_time_entry(
    payload: StartEntryRequest,
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = time_entry_service.start_entry(
            user_id=caller.user_id,
            project_id=int(payload.project_id),
            task_id=int(payload.task_id),
            notes=payload.notes,
            db=db,
        )
        db.commit()
        return StartEntryResponse(id=entry.id)
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{entry_id}/stop", response_model=TimeEntryResponse)
def stop_time_entry(
    entry_id: str,
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = time_entry_service.stop_entry(entry_id, caller.user_id, db=db)
        db.commit()
        return entry
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.patch("/{entry_id}/start_time", response_model=TimeEntryResponse)
def adjust_start_time(
    entry_id: str,
    payload: AdjustStartTimeRequest,
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = time_entry_service.adjust_start_time(
            entry_id,
            caller.user_id,
            payload.start_time,
            db=db,
        )
        db.commit()
        return entry
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
