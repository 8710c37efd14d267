from fastapi import APIRouter, Depends, HTTPException, Response

from worklog.core.authorization import Caller, Role, require_role
from worklog.core.errors import WorklogError
from worklog.database import SessionLocal
from worklog.schemas.project import (
    AssignmentResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    TaskCreate,
    TaskResponse,
)
from worklog.services import catalog_service

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ProjectResponse)
def create_project(
    payload: ProjectCreate,
    _caller: Caller = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        row = catalog_service.create_project(
            db,
            name=payload.name,
            description=payload.description,
            hourly_rate=payload.hourly_rate,
            client_name=payload.client_name,
            client_email=payload.client_email,
        )
        db.commit()
        return row
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    _caller: Caller = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        row = catalog_service.update_project(db, project_id, **payload.model_dump(exclude_unset=True))
        db.commit()
        return row
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{project_id}/tasks", response_model=TaskResponse)
def create_task(
    project_id: int,
    payload: TaskCreate,
    _caller: Caller = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        row = catalog_service.create_task(db, project_id, name=payload.name, description=payload.description)
        db.commit()
        return row
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{project_id}/tasks/{task_id}/toggle", response_model=TaskResponse)
def toggle_task(
    project_id: int,
    task_id: int,
    _caller: Caller = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        row = catalog_service.toggle_task(db, project_id, task_id)
        db.commit()
        return row
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.put("/{project_id}/assignments/{user_id}", response_model=AssignmentResponse)
def assign_worker(
    project_id: int,
    user_id: str,
    _caller: Caller = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        row = catalog_service.assign_worker(db, project_id, user_id)
        db.commit()
        return row
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("/{project_id}/assignments/{user_id}", status_code=204)
def remove_worker(
    project_id: int,
    user_id: str,
    _caller: Caller = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        catalog_service.remove_worker(db, project_id, user_id)
        db.commit()
        return Response(status_code=204)
    except WorklogError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
