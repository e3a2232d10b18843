"""
Analytics API Endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from iep_monitor.api.deps import get_current_actor
from iep_monitor.core.database import get_db
from iep_monitor.models.case_record import CaseStatus
from iep_monitor.schemas.analytics import AnalyticsResult, CohortFilters
from iep_monitor.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("", response_model=AnalyticsResult)
async def get_analytics(
    time_range: str = "year",
    status: Optional[CaseStatus] = None,
    category: Optional[str] = None,
    grade_level: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    """Caseload overview, distributions, compliance and trend buckets for the window"""
    filters = CohortFilters(status=status, category=category, grade_level=grade_level)
    return await AnalyticsService(db).get_analytics(actor_id, time_range, filters)
