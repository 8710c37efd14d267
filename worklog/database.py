import os

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

DEFAULT_DATABASE_URL = "postgresql://localhost/worklog"

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()

DATABASE_URL = ""
engine = None


def _engine_options(database_url: str) -> dict:
    options = {"echo": os.getenv("DATABASE_ECHO", "").lower() in ("1", "true", "yes")}
    if make_url(database_url).drivername.startswith("sqlite"):
        # TestClient runs handlers on a worker thread
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
    return options


def configure_database() -> None:
    """(Re)bind SessionLocal when DATABASE_URL changed since the last call."""
    global DATABASE_URL, engine

    database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    if engine is not None and DATABASE_URL == database_url:
        return

    if engine is not None:
        engine.dispose()

    engine = create_engine(database_url, **_engine_options(database_url))
    SessionLocal.configure(bind=engine)
    DATABASE_URL = database_url


configure_database()
