from datetime import datetime, timedelta, timezone

import pytest

from worklog.core.errors import Conflict, FutureTime, InvalidState, NotFound, Unauthorized
from worklog.database import SessionLocal
from worklog.models.time_entry import TimeEntry
from worklog.services import time_entry_service as entries


def _count_active(user_id: str) -> int:
    db = SessionLocal()
    try:
        return (
            db.query(TimeEntry)
            .filter(TimeEntry.user_id == user_id, TimeEntry.status == "IN_PROGRESS")
            .count()
        )
    finally:
        db.close()


def _load(entry_id: str) -> TimeEntry:
    db = SessionLocal()
    try:
        row = db.query(TimeEntry).filter(TimeEntry.id == entry_id).first()
        assert row is not None
        return row
    finally:
        db.close()


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def test_start_creates_in_progress_entry(catalog):
    worker, project, task = catalog

    row = entries.start_entry(worker.id, project.id, task.id, notes="  kickoff  ")

    assert row.user_id == worker.id
    assert row.status == "IN_PROGRESS"
    assert row.end_time is None
    assert row.duration is None
    assert row.notes == "kickoff"
    assert _count_active(worker.id) == 1


def test_start_stores_blank_notes_as_null(catalog):
    worker, project, task = catalog

    row = entries.start_entry(worker.id, project.id, task.id, notes="   ")

    assert _load(row.id).notes is None


def test_second_start_conflicts_and_leaves_first_entry_untouched(catalog):
    worker, project, task = catalog
    first = entries.start_entry(worker.id, project.id, task.id)

    with pytest.raises(Conflict) as exc:
        entries.start_entry(worker.id, project.id, task.id)

    assert "Active time entry already exists" in str(exc.value)
    assert _count_active(worker.id) == 1
    reloaded = _load(first.id)
    assert reloaded.status == "IN_PROGRESS"
    assert _utc(reloaded.start_time) == _utc(first.start_time)


def test_start_rejects_unknown_project(catalog):
    worker, _project, task = catalog

    with pytest.raises(NotFound):
        entries.start_entry(worker.id, 999999, task.id)

    assert _count_active(worker.id) == 0


def test_start_rejects_task_from_another_project(catalog, project_factory, task_factory):
    worker, project, _task = catalog
    other = project_factory(name="Other")
    foreign_task = task_factory(project_id=other.id)

    with pytest.raises(NotFound) as exc:
        entries.start_entry(worker.id, project.id, foreign_task.id)

    assert "Task not found" in str(exc.value)


def test_stop_after_ninety_minutes_records_duration(catalog):
    worker, project, task = catalog
    t0 = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)
    row = entries.start_entry(worker.id, project.id, task.id, now=t0)

    stopped = entries.stop_entry(row.id, worker.id, now=t0 + timedelta(minutes=90))

    assert stopped.status == "COMPLETED"
    assert stopped.duration == 90
    assert _utc(stopped.end_time) == t0 + timedelta(minutes=90)
    assert _count_active(worker.id) == 0


def test_stop_uses_current_time_by_default(catalog, entry_factory):
    worker, project, task = catalog
    started = datetime.now(timezone.utc) - timedelta(minutes=90)
    row = entry_factory(worker.id, project.id, task.id, start_time=started)

    stopped = entries.stop_entry(row.id, worker.id)

    assert stopped.duration == 90
    assert stopped.status == "COMPLETED"


def test_second_stop_is_invalid_state(catalog):
    worker, project, task = catalog
    row = entries.start_entry(worker.id, project.id, task.id)
    entries.stop_entry(row.id, worker.id)

    with pytest.raises(InvalidState) as exc:
        entries.stop_entry(row.id, worker.id)

    assert "already stopped" in str(exc.value)


def test_stop_requires_ownership(catalog, user_factory):
    worker, project, task = catalog
    intruder = user_factory()
    row = entries.start_entry(worker.id, project.id, task.id)

    with pytest.raises(Unauthorized):
        entries.stop_entry(row.id, intruder.id)

    assert _load(row.id).status == "IN_PROGRESS"


def test_stop_unknown_entry_is_not_found(catalog):
    worker, _project, _task = catalog

    with pytest.raises(NotFound):
        entries.stop_entry("does-not-exist", worker.id)


def test_elapsed_minutes_rounds_half_up():
    t0 = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)

    assert entries.elapsed_minutes(t0, t0 + timedelta(seconds=29)) == 0
    assert entries.elapsed_minutes(t0, t0 + timedelta(seconds=30)) == 1
    assert entries.elapsed_minutes(t0, t0 + timedelta(minutes=2, seconds=30)) == 3
    # naive values are read as UTC
    assert entries.elapsed_minutes(t0.replace(tzinfo=None), t0 + timedelta(minutes=45)) == 45


def test_adjust_start_time_into_future_is_rejected(catalog):
    worker, project, task = catalog
    now = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
    row = entries.start_entry(worker.id, project.id, task.id, now=now - timedelta(minutes=10))

    with pytest.raises(FutureTime):
        entries.adjust_start_time(row.id, worker.id, now + timedelta(minutes=5), now=now)

    assert _utc(_load(row.id).start_time) == now - timedelta(minutes=10)


def test_adjust_start_time_moves_start_back(catalog):
    worker, project, task = catalog
    now = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
    row = entries.start_entry(worker.id, project.id, task.id, now=now)

    adjusted = entries.adjust_start_time(row.id, worker.id, now - timedelta(hours=2), now=now)

    assert _utc(adjusted.start_time) == now - timedelta(hours=2)
    assert adjusted.status == "IN_PROGRESS"
    assert adjusted.duration is None

    stopped = entries.stop_entry(row.id, worker.id, now=now + timedelta(minutes=15))
    assert stopped.duration == 135


def test_adjust_start_time_accepts_exactly_now(catalog):
    worker, project, task = catalog
    now = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
    row = entries.start_entry(worker.id, project.id, task.id, now=now - timedelta(minutes=1))

    adjusted = entries.adjust_start_time(row.id, worker.id, now, now=now)

    assert _utc(adjusted.start_time) == now


def test_adjust_start_time_on_completed_entry_is_invalid_state(catalog):
    worker, project, task = catalog
    row = entries.start_entry(worker.id, project.id, task.id)
    entries.stop_entry(row.id, worker.id)

    with pytest.raises(InvalidState):
        entries.adjust_start_time(row.id, worker.id, datetime.now(timezone.utc) - timedelta(hours=1))


def test_adjust_start_time_requires_ownership(catalog, user_factory):
    worker, project, task = catalog
    intruder = user_factory()
    row = entries.start_entry(worker.id, project.id, task.id)

    with pytest.raises(Unauthorized):
        entries.adjust_start_time(row.id, intruder.id, datetime.now(timezone.utc) - timedelta(hours=1))


def test_get_active_entry_includes_project_and_task_names(catalog):
    worker, project, task = catalog
    assert entries.get_active_entry(worker.id) is None

    row = entries.start_entry(worker.id, project.id, task.id)
    active = entries.get_active_entry(worker.id)

    assert active is not None
    assert active.id == row.id
    assert active.project.name == "Website"
    assert active.task.name == "Design"


def test_caller_owned_session_is_not_committed(catalog):
    worker, project, task = catalog
    db = SessionLocal()
    try:
        entries.start_entry(worker.id, project.id, task.id, db=db)
        db.rollback()
    finally:
        db.close()

    assert _count_active(worker.id) == 0
