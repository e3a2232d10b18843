"""
Case Record API Endpoints
Read access to case records, progress observations and meeting reminders
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from iep_monitor.api.deps import get_current_actor, get_optional_actor
from iep_monitor.core.database import get_db
from iep_monitor.schemas.case_record import (
    CaseRecordResponse,
    MeetingReminderRequest,
    MeetingReminderResponse,
    ProgressObservationCreate,
    ProgressObservationResponse,
)
from iep_monitor.services.notification_service import NotificationService
from iep_monitor.services.progress_service import ProgressService
from iep_monitor.services.record_access import RecordAccessService

router = APIRouter(prefix="/cases", tags=["Cases"])


@router.get("", response_model=List[CaseRecordResponse])
async def list_cases(
    owned_only: bool = False,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[str] = Depends(get_optional_actor),
):
    """Cases visible to the caller; empty for anonymous callers"""
    service = RecordAccessService(db)
    if owned_only:
        return await service.list_owned_records(actor_id)
    return await service.list_accessible_records(actor_id)


@router.get("/{record_id}", response_model=CaseRecordResponse)
async def get_case(
    record_id: str,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return await RecordAccessService(db).get_accessible_record(actor_id, record_id)


@router.post("/{record_id}/progress", response_model=ProgressObservationResponse,
             status_code=status.HTTP_201_CREATED)
async def add_progress(
    record_id: str,
    payload: ProgressObservationCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return await ProgressService(db).record_observation(
        actor_id,
        record_id,
        payload.goal_id,
        payload.value,
        observed_on=payload.observed_on,
        notes=payload.notes,
        intervention_used=payload.intervention_used,
    )


@router.get("/{record_id}/progress", response_model=List[ProgressObservationResponse])
async def list_progress(
    record_id: str,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return await ProgressService(db).list_observations(actor_id, record_id)


@router.post("/{record_id}/meeting-reminders", response_model=MeetingReminderResponse)
async def send_meeting_reminder(
    record_id: str,
    payload: MeetingReminderRequest,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    recipients = await NotificationService(db).send_meeting_reminder(actor_id, record_id, payload.meeting_date)
    return MeetingReminderResponse(recipients=recipients)
