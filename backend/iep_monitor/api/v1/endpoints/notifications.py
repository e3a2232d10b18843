"""
Notification API Endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from iep_monitor.api.deps import get_current_actor
from iep_monitor.core.database import get_db
from iep_monitor.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from iep_monitor.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    service = NotificationService(db)
    notifications = await service.list_notifications(actor_id, limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=await service.unread_count(actor_id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return UnreadCountResponse(unread_count=await NotificationService(db).unread_count(actor_id))


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return MarkAllReadResponse(marked=await NotificationService(db).mark_all_read(actor_id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return await NotificationService(db).mark_read(actor_id, notification_id)
