import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DISPLAY_TIMEZONE", "UTC")

import subprocess
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal
from itertools import count
from pathlib import Path
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    f"sqlite:///{Path(tempfile.gettempdir()) / 'worklog_test.db'}",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from worklog import database
from worklog.models import Project, ProjectAssignment, Task, TimeEntry, User


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _is_postgres() -> bool:
    return make_url(TEST_DATABASE_URL).drivername.startswith("postgresql")


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    _ensure_database_exists(TEST_DATABASE_URL)
    database.configure_database()

    if _is_postgres():
        env = os.environ.copy()
        env["DATABASE_URL"] = TEST_DATABASE_URL
        subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            cwd=Path(__file__).resolve().parents[2],
            env=env,
        )
    else:
        database.Base.metadata.drop_all(bind=database.engine)
        database.Base.metadata.create_all(bind=database.engine)


def _truncate_all_tables() -> None:
    with database.engine.begin() as conn:
        if _is_postgres():
            names = ", ".join(f'"public"."{t.name}"' for t in database.Base.metadata.sorted_tables)
            conn.execute(text(f"TRUNCATE TABLE {names} RESTART IDENTITY CASCADE"))
            return
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _truncate_all_tables()
    yield
    _truncate_all_tables()


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


_seq = count(1)


def _persist(row):
    session = database.SessionLocal()
    try:
        session.add(row)
        session.commit()
        session.refresh(row)
        return row
    finally:
        session.close()


@pytest.fixture
def user_factory():
    def make(role="WORKER", name=None, email=None, status="ACTIVE", user_id=None):
        n = next(_seq)
        return _persist(
            User(
                id=user_id or f"user-{n}",
                email=email or f"user{n}@example.com",
                name=name,
                role=role,
                status=status,
            )
        )

    return make


@pytest.fixture
def project_factory():
    def make(name=None, hourly_rate=None, status="ACTIVE", client_name=None):
        n = next(_seq)
        return _persist(
            Project(
                name=name or f"Project {n}",
                hourly_rate=None if hourly_rate is None else Decimal(str(hourly_rate)),
                status=status,
                client_name=client_name,
            )
        )

    return make


@pytest.fixture
def task_factory():
    def make(project_id, name=None, is_active=True, created_at=None):
        n = next(_seq)
        return _persist(
            Task(
                project_id=project_id,
                name=name or f"Task {n}",
                is_active=is_active,
                created_at=created_at or datetime.utcnow(),
            )
        )

    return make


@pytest.fixture
def assignment_factory():
    def make(project_id, user_id):
        return _persist(ProjectAssignment(project_id=project_id, user_id=user_id))

    return make


@pytest.fixture
def entry_factory():
    def make(user_id, project_id, task_id, start_time, duration=None, status=None, notes=None):
        status = status or ("COMPLETED" if duration is not None else "IN_PROGRESS")
        end_time = start_time + timedelta(minutes=duration) if duration is not None else None
        return _persist(
            TimeEntry(
                id=str(uuid4()),
                user_id=user_id,
                project_id=project_id,
                task_id=task_id,
                start_time=start_time,
                end_time=end_time,
                duration=duration,
                status=status,
                notes=notes,
            )
        )

    return make


@pytest.fixture
def catalog(user_factory, project_factory, task_factory, assignment_factory):
    """A worker assigned to one active project with one task."""
    worker = user_factory(role="WORKER", name="Ana")
    project = project_factory(name="Website", hourly_rate="25.00")
    task = task_factory(project_id=project.id, name="Design")
    assignment_factory(project_id=project.id, user_id=worker.id)
    return worker, project, task


@pytest.fixture
def auth_headers():
    from fastapi.testclient import TestClient

    from worklog.main import app

    client = TestClient(app)

    def make(user_id: str) -> dict:
        resp = client.post("/auth/token", json={"user_id": user_id})
        assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
        data = resp.json()
        assert "access_token" in data, f"token response missing access_token: {data}"
        return {"Authorization": f"Bearer {data['access_token']}"}

    return make
