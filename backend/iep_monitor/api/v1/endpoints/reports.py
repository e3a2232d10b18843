"""
Report API Endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from iep_monitor.api.deps import get_current_actor
from iep_monitor.core.database import get_db
from iep_monitor.schemas.report import ReportCreate, ReportListResponse, ReportResponse, ReportSummary
from iep_monitor.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_report(
    payload: ReportCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return await ReportService(db).generate_report(
        actor_id, payload.report_type, payload.time_range, payload.filters
    )


@router.get("", response_model=ReportListResponse)
async def list_reports(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    reports = await ReportService(db).list_reports(actor_id, limit)
    return ReportListResponse(reports=[ReportSummary.model_validate(r) for r in reports])


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return await ReportService(db).get_report(actor_id, report_id)
