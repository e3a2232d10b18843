from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Any, Dict
from datetime import datetime

from iep_monitor.models.report import ReportType, ReportStatus
from iep_monitor.schemas.analytics import CohortFilters


class ReportCreate(BaseModel):
    report_type: ReportType
    time_range: str = Field("year", min_length=1, max_length=20)
    filters: Optional[CohortFilters] = None


class ReportSummary(BaseModel):
    id: str
    report_type: ReportType
    time_range: str
    filters: Dict[str, Any] = {}
    status: ReportStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportResponse(ReportSummary):
    user_id: str
    data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None


class ReportListResponse(BaseModel):
    reports: List[ReportSummary]
