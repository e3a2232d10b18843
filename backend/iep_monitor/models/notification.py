"""
Notification Model - per-user alerts
Append-mostly: only read/read_at change after creation
"""

from sqlalchemy import Column, String, DateTime, Text, Boolean, Index, Enum as SQLEnum
import enum

from iep_monitor.core.database import Base
from iep_monitor.core.types import GUID, generate_uuid, utcnow


class NotificationType(str, enum.Enum):
    IEP_DUE = "iep_due"
    MEETING_REMINDER = "meeting_reminder"
    GOAL_UPDATE = "goal_update"
    TEAM_INVITATION = "team_invitation"
    COMPLIANCE_ALERT = "compliance_alert"
    SYSTEM_UPDATE = "system_update"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Notification(Base):
    """Alert addressed to one recipient"""
    __tablename__ = "notifications"

    __table_args__ = (
        Index('ix_notifications_user_read', 'user_id', 'read'),
        Index('ix_notifications_user_created', 'user_id', 'created_at'),
        Index('ix_notifications_dedup_key', 'dedup_key'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, nullable=False)

    type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(SQLEnum(NotificationPriority), default=NotificationPriority.MEDIUM, nullable=False)

    # Read state
    read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)

    # Related context
    related_id = Column(String(100), nullable=True)  # e.g. a case record id
    action_url = Column(String(500), nullable=True)

    # recordId:goalId|-:alertKind:dateBucket for scan alerts
    dedup_key = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Notification {self.type} -> {self.user_id} read={self.read}>"
