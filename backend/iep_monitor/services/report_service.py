"""
Report Service
Stores immutable snapshots of analytics results and serves them back to their owner
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from iep_monitor.core.config import settings
from iep_monitor.core.exceptions import (
    IEPMonitorError,
    UnauthenticatedError,
    AccessDeniedError,
    ReportNotFoundError,
)
from iep_monitor.core.logging_config import logger
from iep_monitor.core.types import utcnow
from iep_monitor.models.report import ReportSnapshot, ReportType, ReportStatus
from iep_monitor.schemas.analytics import CohortFilters
from iep_monitor.services.analytics_service import AnalyticsService, normalize_time_range


class ReportService:
    """Snapshot store for generated reports"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_snapshot(
        self,
        actor_id: Optional[str],
        report_type: ReportType,
        time_range: str,
        data: Optional[Dict[str, Any]],
        filters: Optional[CohortFilters] = None,
        status: ReportStatus = ReportStatus.GENERATED,
        error_message: Optional[str] = None,
    ) -> ReportSnapshot:
        """Persist one snapshot; data is stored verbatim and never updated"""
        if not actor_id:
            raise UnauthenticatedError()

        snapshot = ReportSnapshot(
            user_id=actor_id,
            report_type=report_type,
            time_range=time_range,
            filters=filters.model_dump(mode="json", exclude_none=True) if filters else {},
            data=data,
            status=status,
            error_message=error_message,
            created_at=utcnow(),
        )
        self.db.add(snapshot)
        await self.db.commit()
        await self.db.refresh(snapshot)
        return snapshot

    async def generate_report(
        self,
        actor_id: Optional[str],
        report_type: ReportType,
        time_range: str,
        filters: Optional[CohortFilters] = None,
        now: Optional[datetime] = None,
    ) -> ReportSnapshot:
        """
        Run analytics for the actor (filters narrow the cohort) and store the
        result. The snapshot keeps the caller's time_range label as given; the
        aggregation uses the normalized window. If aggregation fails, a failed
        snapshot is stored and the error is re-raised.
        """
        if not actor_id:
            raise UnauthenticatedError()
        label = normalize_time_range(time_range)
        requested = time_range or label

        try:
            analytics = await AnalyticsService(self.db).get_analytics(actor_id, label, filters, now)
        except Exception as e:
            await self.db.rollback()
            logger.log_error_with_context(e, "generate_report", report_type=report_type.value)
            await self.create_snapshot(
                actor_id, report_type, requested, None, filters,
                status=ReportStatus.FAILED, error_message=e.message if isinstance(e, IEPMonitorError) else str(e),
            )
            raise

        snapshot = await self.create_snapshot(
            actor_id, report_type, requested, analytics.model_dump(mode="json"), filters,
        )
        logger.info(
            f"Report {snapshot.id} generated ({report_type.value}, {label})",
            extra={"event_type": "report_generated", "report_id": str(snapshot.id)},
        )
        return snapshot

    async def list_reports(self, actor_id: Optional[str], limit: Optional[int] = None) -> List[ReportSnapshot]:
        """Most recent snapshots owned by the actor, newest first; created_at ties by id descending"""
        if not actor_id:
            raise UnauthenticatedError()
        limit = limit or settings.REPORT_LIST_LIMIT

        result = await self.db.execute(
            select(ReportSnapshot)
            .where(ReportSnapshot.user_id == actor_id)
            .order_by(ReportSnapshot.created_at.desc(), ReportSnapshot.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_report(self, actor_id: Optional[str], report_id: str) -> ReportSnapshot:
        if not actor_id:
            raise UnauthenticatedError()

        snapshot = await self.db.get(ReportSnapshot, report_id)
        if snapshot is None:
            raise ReportNotFoundError(report_id)
        if str(snapshot.user_id) != str(actor_id):
            raise AccessDeniedError(
                "Report belongs to another user",
                resource_type="report",
                resource_id=report_id,
            )
        return snapshot
