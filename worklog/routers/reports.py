from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import ValidationError

from worklog.core.errors import WorklogError
from worklog.core.identity import Caller
from worklog.core.local_time import display_timezone, utc_now
from worklog.database import SessionLocal
from worklog.deps.auth import require_auth
from worklog.schemas.report import FilterCatalog, ReportFilters, ReportRow, ReportSummary
from worklog.services import export_service, report_service

router = APIRouter(prefix="/reports", tags=["Reports"])


def report_filters(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    project_id: Optional[str] = None,
    user_id: Optional[str] = None,
    task_id: Optional[str] = None,
    status: Optional[str] = None,
) -> ReportFilters:
    """Blank query values mean the filter is unset; the model does the parsing."""
    try:
        return ReportFilters(
            start_date=start_date,
            end_date=end_date,
            project_id=project_id,
            user_id=user_id,
            task_id=task_id,
            status=status,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc


@router.get("", response_model=list[ReportRow])
def get_report(
    filters: ReportFilters = Depends(report_filters),
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return report_service.query_report(caller, filters, db=db)
    except WorklogError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/summary", response_model=ReportSummary)
def get_report_summary(
    filters: ReportFilters = Depends(report_filters),
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return report_service.summarize_report(caller, filters, db=db)
    except WorklogError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/filters", response_model=FilterCatalog)
def get_filter_catalog(caller: Caller = Depends(require_auth)):
    db = SessionLocal()
    try:
        return report_service.filter_catalog(caller, db=db)
    except WorklogError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/export")
def export_report(
    filters: ReportFilters = Depends(report_filters),
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        rows = report_service.query_report(caller, filters, db=db)
    except WorklogError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    finally:
        db.close()

    tz = display_timezone()
    filename = export_service.export_filename(utc_now().astimezone(tz).date())
    return Response(
        content=export_service.rows_to_csv(rows, tz=tz),
        media_type=export_service.CSV_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
