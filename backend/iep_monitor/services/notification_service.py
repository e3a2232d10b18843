"""
Notification Service - per-user alert inbox

Notifications are appended unread, listed newest first, and only ever
mutated to flip read/read_at. A recipient can only read or mark their own.
"""

from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from iep_monitor.core.config import settings
from iep_monitor.core.exceptions import (
    UnauthenticatedError,
    AccessDeniedError,
    NotificationNotFoundError,
)
from iep_monitor.core.logging_config import logger
from iep_monitor.core.types import utcnow
from iep_monitor.models.notification import Notification, NotificationType, NotificationPriority
from iep_monitor.services.record_access import RecordAccessService


class NotificationService:
    """Notification sink and inbox queries"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_notification(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        related_id: Optional[str] = None,
        action_url: Optional[str] = None,
        dedup_key: Optional[str] = None,
    ) -> Notification:
        """
        Append one unread notification.

        Does not check for an existing notification for the same condition;
        callers that need that use exists_for_key() first. Flushes but does
        not commit.
        """
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            priority=priority,
            related_id=related_id,
            action_url=action_url,
            dedup_key=dedup_key,
            read=False,
            created_at=utcnow(),
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def exists_for_key(self, user_id: str, dedup_key: str) -> bool:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.dedup_key == dedup_key,
            )
        )
        return (result.scalar() or 0) > 0

    async def list_notifications(self, actor_id: Optional[str], limit: Optional[int] = None) -> List[Notification]:
        """
        Most recent notifications for the actor, newest first.

        Notifications with the same created_at come back in descending id
        order, which is stable across calls but not insertion order.
        """
        if not actor_id:
            raise UnauthenticatedError()
        limit = limit or settings.NOTIFICATION_LIST_LIMIT

        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == actor_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def unread_count(self, actor_id: Optional[str]) -> int:
        if not actor_id:
            raise UnauthenticatedError()

        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == actor_id,
                Notification.read == False,  # noqa: E712
            )
        )
        return result.scalar() or 0

    async def mark_read(self, actor_id: Optional[str], notification_id: str) -> Notification:
        if not actor_id:
            raise UnauthenticatedError()

        notification = await self.db.get(Notification, notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        if str(notification.user_id) != str(actor_id):
            raise AccessDeniedError(
                "Cannot modify another user's notification",
                resource_type="notification",
                resource_id=notification_id,
            )

        if not notification.read:
            notification.read = True
            notification.read_at = utcnow()
            await self.db.commit()
        return notification

    async def mark_all_read(self, actor_id: Optional[str]) -> int:
        """Mark every unread notification of the actor in one statement"""
        if not actor_id:
            raise UnauthenticatedError()

        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == actor_id,
                Notification.read == False,  # noqa: E712
            )
            .values(read=True, read_at=utcnow())
        )
        await self.db.commit()
        return result.rowcount or 0

    async def send_meeting_reminder(
        self,
        actor_id: Optional[str],
        record_id: str,
        meeting_date: str,
    ) -> List[str]:
        """
        Remind every team member of a meeting, plus the owner when the
        owner is missing from the team list. Returns the recipients.
        """
        record = await RecordAccessService(self.db).get_accessible_record(actor_id, record_id)

        recipients = [str(m) for m in (record.team_members or [])]
        if str(record.owner_id) not in recipients:
            recipients.append(str(record.owner_id))
        # Team lists are not guaranteed unique
        recipients = list(dict.fromkeys(recipients))

        for recipient in recipients:
            await self.create_notification(
                user_id=recipient,
                type=NotificationType.MEETING_REMINDER,
                title="IEP Meeting Reminder",
                message=f"IEP meeting for {record.subject_name} is scheduled for {meeting_date}.",
                priority=NotificationPriority.MEDIUM,
                related_id=str(record.id),
            )
        await self.db.commit()

        logger.info(
            f"Meeting reminder sent for {record.id} to {len(recipients)} recipients",
            extra={"event_type": "meeting_reminder", "record_id": str(record.id)},
        )
        return recipients
