from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from worklog.core.errors import Unauthorized
from worklog.core.identity import Caller
from worklog.core.local_time import day_window, display_timezone
from worklog.models.project import Project, Task
from worklog.models.time_entry import TimeEntry
from worklog.models.user import User, UserRole
from worklog.schemas.report import (
    CatalogProject,
    CatalogTask,
    CatalogUser,
    FilterCatalog,
    ProjectSummary,
    ReportFilters,
    ReportRow,
    ReportSummary,
    UserSummary,
)

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")
_MINUTES_PER_HOUR = Decimal(60)


def _require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        logger.warning("Report access denied", extra={"user_id": caller.user_id, "role": caller.role.value})
        raise Unauthorized("Reports require the ADMIN role")


def _filtered_entries(db: Session, filters: ReportFilters):
    q = db.query(TimeEntry)

    if filters.start_date is not None or filters.end_date is not None:
        tz = display_timezone()
        if filters.start_date is not None:
            window_start, _ = day_window(filters.start_date, filters.start_date, tz)
            q = q.filter(TimeEntry.start_time >= window_start)
        if filters.end_date is not None:
            _, window_end = day_window(filters.end_date, filters.end_date, tz)
            q = q.filter(TimeEntry.start_time < window_end)

    if filters.project_id is not None:
        q = q.filter(TimeEntry.project_id == int(filters.project_id))
    if filters.user_id is not None:
        q = q.filter(TimeEntry.user_id == str(filters.user_id))
    if filters.task_id is not None:
        q = q.filter(TimeEntry.task_id == int(filters.task_id))
    if filters.status is not None:
        q = q.filter(TimeEntry.status == str(filters.status))

    return q.order_by(TimeEntry.start_time.desc(), TimeEntry.id.asc())


def query_report(
    caller: Caller,
    filters: Optional[ReportFilters] = None,
    *,
    db: Session,
) -> list[ReportRow]:
    """
    Read-only reporting query.

    Semantics:
      start_time >= start_date 00:00 AND start_time < (end_date + 1) 00:00,
      days taken in the display timezone.
    Ordering:
      start_time descending
    """
    _require_admin(caller)
    filters = filters or ReportFilters()

    rows = [ReportRow.model_validate(entry) for entry in _filtered_entries(db, filters).all()]

    logger.info(
        "Report queried",
        extra={"user_id": caller.user_id, "filters": filters.model_dump(exclude_none=True), "row_count": len(rows)},
    )
    return rows


def _row_cost(row: ReportRow) -> Decimal:
    rate = row.project.hourly_rate
    if not rate or not row.duration:
        return Decimal(0)
    return Decimal(row.duration) / _MINUTES_PER_HOUR * Decimal(rate)


def summarize_rows(rows: Iterable[ReportRow]) -> ReportSummary:
    by_user: dict[str, UserSummary] = {}
    by_project: dict[int, ProjectSummary] = {}
    raw_cost: dict[int, Decimal] = {}

    total_entries = 0
    total_minutes = 0

    for row in rows:
        minutes = row.duration or 0
        total_entries += 1
        total_minutes += minutes

        user_group = by_user.get(row.user.id)
        if user_group is None:
            user_group = by_user[row.user.id] = UserSummary(user=row.user)
        user_group.total_minutes += minutes
        user_group.entries_count += 1

        project_group = by_project.get(row.project.id)
        if project_group is None:
            project_group = by_project[row.project.id] = ProjectSummary(project=row.project)
            raw_cost[row.project.id] = Decimal(0)
        project_group.total_minutes += minutes
        project_group.entries_count += 1
        raw_cost[row.project.id] += _row_cost(row)

    # cost is rounded to cents per project group, never per row
    for project_id, group in by_project.items():
        group.estimated_cost = raw_cost[project_id].quantize(_CENTS, rounding=ROUND_HALF_UP)

    return ReportSummary(
        total_entries=total_entries,
        total_minutes=total_minutes,
        total_hours=total_minutes / 60,
        by_user=list(by_user.values()),
        by_project=list(by_project.values()),
    )


def summarize_report(
    caller: Caller,
    filters: Optional[ReportFilters] = None,
    *,
    db: Session,
) -> ReportSummary:
    return summarize_rows(query_report(caller, filters, db=db))


def filter_catalog(caller: Caller, *, db: Session) -> FilterCatalog:
    _require_admin(caller)

    projects = db.query(Project).order_by(Project.name.asc(), Project.id.asc()).all()
    users = (
        db.query(User)
        .filter(User.role == UserRole.WORKER)
        .order_by(User.name.asc(), User.email.asc())
        .all()
    )
    tasks = db.query(Task).order_by(Task.name.asc(), Task.id.asc()).all()

    return FilterCatalog(
        projects=[CatalogProject.model_validate(p) for p in projects],
        users=[CatalogUser.model_validate(u) for u in users],
        tasks=[CatalogTask.model_validate(t) for t in tasks],
    )
