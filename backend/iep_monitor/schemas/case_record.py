from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Any, Dict
from datetime import datetime

from iep_monitor.models.case_record import CaseStatus


class CaseRecordResponse(BaseModel):
    id: str
    subject_name: str
    subject_id: Optional[str] = None
    grade_level: Optional[str] = None
    category: Optional[str] = None
    status: CaseStatus
    meeting_date: Optional[str] = None
    annual_review_date: Optional[str] = None
    owner_id: str
    team_members: List[str] = []
    goals: List[Dict[str, Any]] = []
    services: List[Dict[str, Any]] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProgressObservationCreate(BaseModel):
    goal_id: str = Field(..., min_length=1, max_length=100)
    value: float
    observed_on: Optional[str] = None
    notes: Optional[str] = None
    intervention_used: Optional[str] = None


class ProgressObservationResponse(BaseModel):
    id: str
    case_record_id: str
    goal_id: str
    value: float
    observed_on: Optional[str] = None
    notes: Optional[str] = None
    intervention_used: Optional[str] = None
    recorded_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MeetingReminderRequest(BaseModel):
    meeting_date: str = Field(..., min_length=1, max_length=50)


class MeetingReminderResponse(BaseModel):
    recipients: List[str]
