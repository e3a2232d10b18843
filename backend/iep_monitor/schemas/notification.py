from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime

from iep_monitor.models.notification import NotificationType, NotificationPriority


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    read: bool
    read_at: Optional[datetime] = None
    related_id: Optional[str] = None
    action_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkAllReadResponse(BaseModel):
    marked: int
