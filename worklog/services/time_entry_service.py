import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager

from worklog.core.errors import Conflict, FutureTime, InvalidState, NotFound, Unauthorized
from worklog.core.local_time import as_utc, display_timezone, local_midnight, utc_now
from worklog.database import SessionLocal
from worklog.models.project import Project, ProjectAssignment, ProjectStatus, Task
from worklog.models.time_entry import TimeEntry, TimeEntryStatus

logger = logging.getLogger(__name__)

RANGE_FILTERS = ("today", "week", "month")


def _get_active_entry(db: Session, user_id: str) -> Optional[TimeEntry]:
    return (
        db.query(TimeEntry)
        .filter(
            TimeEntry.user_id == user_id,
            TimeEntry.status == TimeEntryStatus.IN_PROGRESS,
        )
        .first()
    )


def _get_owned_entry_for_update(db: Session, entry_id: str, caller_user_id: str) -> TimeEntry:
    entry = (
        db.query(TimeEntry)
        .filter(TimeEntry.id == entry_id)
        .populate_existing()
        .with_for_update(of=TimeEntry)
        .first()
    )
    if entry is None:
        raise NotFound("Time entry not found")
    if entry.user_id != caller_user_id:
        raise Unauthorized("Time entry belongs to another user")
    return entry


def _require_task_in_project(db: Session, project_id: int, task_id: int) -> None:
    project = db.query(Project).filter(Project.id == project_id).first()
    if project is None:
        raise NotFound("Project not found")

    task = db.query(Task).filter(Task.id == task_id).first()
    if task is None or task.project_id != project.id:
        raise NotFound("Task not found in project")


def elapsed_minutes(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes between two instants, halves rounded up."""
    seconds = Decimal(str((as_utc(end_time) - as_utc(start_time)).total_seconds()))
    return int((seconds / Decimal(60)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def start_entry(
    user_id: str,
    project_id: int,
    task_id: int,
    notes: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> TimeEntry:
    """
    If db is provided, this function will NOT commit/close. Caller owns the transaction
    and must roll back after a Conflict.
    If db is None, this function manages its own session + commit.

    The active-entry check is repeated by uq_time_entries_active_user at flush
    time, so two concurrent starts for one user cannot both succeed.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    started_at = as_utc(now or utc_now())

    try:
        if _get_active_entry(db, user_id) is not None:
            raise Conflict("Active time entry already exists for user")

        _require_task_in_project(db, project_id, task_id)

        entry = TimeEntry(
            id=str(uuid4()),
            user_id=user_id,
            project_id=project_id,
            task_id=task_id,
            start_time=started_at,
            end_time=None,
            duration=None,
            status=TimeEntryStatus.IN_PROGRESS,
            notes=(notes or "").strip() or None,
        )

        db.add(entry)
        try:
            db.flush()
        except IntegrityError as exc:
            raise Conflict("Active time entry already exists for user") from exc

        db.refresh(entry)

        if owns_db:
            db.commit()

        logger.info(
            "Time entry started",
            extra={"time_entry_id": entry.id, "user_id": user_id, "project_id": project_id, "task_id": task_id},
        )
        return entry
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def stop_entry(
    entry_id: str,
    caller_user_id: str,
    *,
    now: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> TimeEntry:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    ended_at = as_utc(now or utc_now())

    try:
        entry = _get_owned_entry_for_update(db, entry_id, caller_user_id)
        if entry.status != TimeEntryStatus.IN_PROGRESS:
            raise InvalidState("Time entry already stopped")

        entry.end_time = ended_at
        entry.duration = max(elapsed_minutes(entry.start_time, ended_at), 0)
        entry.status = TimeEntryStatus.COMPLETED

        db.flush()
        db.refresh(entry)

        if owns_db:
            db.commit()

        logger.info(
            "Time entry stopped",
            extra={"time_entry_id": entry.id, "user_id": caller_user_id, "duration": entry.duration},
        )
        return entry
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def adjust_start_time(
    entry_id: str,
    caller_user_id: str,
    new_start_time: datetime,
    *,
    now: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> TimeEntry:
    """Move the start of a running entry; the new start may not be in the future."""
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    current = as_utc(now or utc_now())
    new_start = as_utc(new_start_time)

    try:
        entry = _get_owned_entry_for_update(db, entry_id, caller_user_id)
        if entry.status != TimeEntryStatus.IN_PROGRESS:
            raise InvalidState("Only running time entries can be adjusted")

        if new_start > current:
            raise FutureTime("Start time cannot be in the future")

        entry.start_time = new_start

        db.flush()
        db.refresh(entry)

        if owns_db:
            db.commit()

        logger.info(
            "Time entry start adjusted",
            extra={"time_entry_id": entry.id, "user_id": caller_user_id, "start_time": new_start.isoformat()},
        )
        return entry
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def get_active_entry(user_id: str, *, db: Optional[Session] = None) -> Optional[TimeEntry]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return _get_active_entry(db, user_id)
    finally:
        if owns_db:
            db.close()


def range_start(range_filter: str, now: datetime) -> datetime:
    """UTC instant where a today/week/month listing begins, in display-local days."""
    tz = display_timezone()
    today = as_utc(now).astimezone(tz).date()

    if range_filter == "today":
        start_day = today
    elif range_filter == "week":
        # ISO week: Monday is weekday() == 0
        start_day = today - timedelta(days=today.weekday())
    elif range_filter == "month":
        start_day = today.replace(day=1)
    else:
        raise ValueError(f"Unknown range filter: {range_filter}")

    return local_midnight(start_day, tz)


def list_entries(
    user_id: str,
    range_filter: str = "today",
    *,
    now: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> list[TimeEntry]:
    start = range_start(range_filter, now or utc_now())

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return (
            db.query(TimeEntry)
            .filter(
                TimeEntry.user_id == user_id,
                TimeEntry.start_time >= start,
            )
            .order_by(TimeEntry.start_time.desc())
            .all()
        )
    finally:
        if owns_db:
            db.close()


def list_assigned_projects(user_id: str, *, db: Optional[Session] = None) -> list[Project]:
    """Active projects assigned to the user; each carries only its active tasks."""
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return (
            db.query(Project)
            .join(ProjectAssignment, ProjectAssignment.project_id == Project.id)
            .outerjoin(Task, and_(Task.project_id == Project.id, Task.is_active.is_(True)))
            .filter(
                ProjectAssignment.user_id == user_id,
                Project.status == ProjectStatus.ACTIVE,
            )
            .options(contains_eager(Project.tasks))
            .populate_existing()
            .order_by(Project.name.asc(), Project.id.asc(), Task.created_at.desc(), Task.id.desc())
            .all()
        )
    finally:
        if owns_db:
            db.close()
