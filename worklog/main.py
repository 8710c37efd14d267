from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from worklog.core.logging import configure_logging
from worklog.models import project, time_entry, user  # noqa: F401
from worklog.routers.auth import router as auth_router
from worklog.routers.projects import router as projects_router
from worklog.routers.reports import router as reports_router
from worklog.routers.time_entries import router as time_entries_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Worklog service starting")
    yield
    logger.info("Worklog service stopped")


app = FastAPI(
    title="Worklog",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(time_entries_router)
app.include_router(reports_router)
app.include_router(projects_router)


@app.get("/")
def root():
    return {"status": "Worklog running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
