from pydantic import BaseModel, ConfigDict
from typing import Optional, List

from iep_monitor.models.notification import NotificationType, NotificationPriority


class AlertDraft(BaseModel):
    """An alert the scanner decided to emit, before it is written"""
    model_config = ConfigDict(frozen=True)

    kind: str  # overdue_review, review_due_7, review_due_30, stale_goal
    type: NotificationType
    priority: NotificationPriority
    title: str
    message: str
    record_id: str
    goal_id: Optional[str] = None


class ScanFailure(BaseModel):
    record_id: str
    reason: str


class ScanResult(BaseModel):
    records_scanned: int = 0
    alerts_created: int = 0
    alerts_skipped: int = 0
    failures: List[ScanFailure] = []
