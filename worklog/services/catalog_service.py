import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from worklog.core.errors import Conflict, InvalidState, NotFound, WorklogError
from worklog.models.project import Project, ProjectAssignment, ProjectStatus, Task
from worklog.models.user import User, UserRole

logger = logging.getLogger(__name__)


def _get_project(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == int(project_id)).first()
    if project is None:
        raise NotFound("Project not found")
    return project


def create_project(
    db: Session,
    *,
    name: str,
    description: Optional[str] = None,
    hourly_rate: Optional[Decimal] = None,
    client_name: Optional[str] = None,
    client_email: Optional[str] = None,
) -> Project:
    project = Project(
        name=name,
        description=description or None,
        hourly_rate=hourly_rate,
        status=ProjectStatus.ACTIVE,
        client_name=client_name or None,
        client_email=client_email or None,
    )
    db.add(project)
    db.flush()
    db.refresh(project)
    logger.info("Project created", extra={"project_id": project.id})
    return project


_UPDATABLE_PROJECT_FIELDS = ("name", "description", "hourly_rate", "status", "client_name", "client_email")


def update_project(db: Session, project_id: int, **fields) -> Project:
    """Apply the given fields; blank optional text clears the column."""
    unknown = set(fields) - set(_UPDATABLE_PROJECT_FIELDS)
    if unknown:
        raise WorklogError(f"Unknown project fields: {', '.join(sorted(unknown))}")

    project = _get_project(db, project_id)

    if "name" in fields and not (fields["name"] or "").strip():
        raise WorklogError("Project name is required")
    if "status" in fields and fields["status"] not in ProjectStatus.ALL:
        raise WorklogError(f"Unknown project status: {fields['status']}")
    if fields.get("hourly_rate") is not None and Decimal(fields["hourly_rate"]) < 0:
        raise WorklogError("Hourly rate cannot be negative")

    for key, value in fields.items():
        if key in ("description", "client_name", "client_email"):
            value = value or None
        setattr(project, key, value)

    db.flush()
    db.refresh(project)
    logger.info("Project updated", extra={"project_id": project.id, "fields": sorted(fields)})
    return project


def create_task(db: Session, project_id: int, *, name: str, description: Optional[str] = None) -> Task:
    project = _get_project(db, project_id)

    task = Task(project_id=project.id, name=name, description=description or None, is_active=True)
    db.add(task)
    db.flush()
    db.refresh(task)
    logger.info("Task created", extra={"project_id": project.id, "task_id": task.id})
    return task


def toggle_task(db: Session, project_id: int, task_id: int) -> Task:
    task = (
        db.query(Task)
        .filter(Task.id == int(task_id), Task.project_id == int(project_id))
        .first()
    )
    if task is None:
        raise NotFound("Task not found in project")

    task.is_active = not task.is_active
    db.flush()
    return task


def assign_worker(db: Session, project_id: int, user_id: str) -> ProjectAssignment:
    """An existing (project, user) link is returned unchanged."""
    project = _get_project(db, project_id)

    user = db.query(User).filter(User.id == str(user_id)).first()
    if user is None:
        raise NotFound("User not found")
    if user.role != UserRole.WORKER:
        raise InvalidState("Only workers can be assigned to projects")

    existing = (
        db.query(ProjectAssignment)
        .filter(ProjectAssignment.project_id == project.id, ProjectAssignment.user_id == user.id)
        .first()
    )
    if existing is not None:
        return existing

    assignment = ProjectAssignment(project_id=project.id, user_id=user.id)
    db.add(assignment)
    try:
        db.flush()
    except IntegrityError as exc:
        raise Conflict("Worker already assigned to project") from exc

    logger.info("Worker assigned", extra={"project_id": project.id, "user_id": user.id})
    return assignment


def remove_worker(db: Session, project_id: int, user_id: str) -> None:
    deleted = (
        db.query(ProjectAssignment)
        .filter(ProjectAssignment.project_id == int(project_id), ProjectAssignment.user_id == str(user_id))
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFound("Assignment not found")
    logger.info("Worker unassigned", extra={"project_id": int(project_id), "user_id": str(user_id)})
