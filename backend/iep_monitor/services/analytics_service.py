"""
Analytics Service
Builds the caseload analytics view for one actor
"""

import time
from typing import Optional
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession

from iep_monitor.core.exceptions import UnauthenticatedError
from iep_monitor.core.logging_config import logger
from iep_monitor.core.types import utcnow
from iep_monitor.schemas.analytics import AnalyticsResult, CohortFilters, DEFAULT_TIME_RANGE, TIME_RANGE_DAYS
from iep_monitor.services.record_access import RecordAccessService, apply_filters
from iep_monitor.services.trend_bucketizer import bucketize
from iep_monitor.services.window_aggregator import aggregate_window, window_start


def normalize_time_range(time_range: Optional[str]) -> str:
    label = (time_range or "").lower()
    return label if label in TIME_RANGE_DAYS else DEFAULT_TIME_RANGE


class AnalyticsService:
    """Window aggregation + trend buckets over the actor's accessible cohort"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.records = RecordAccessService(db)

    async def get_analytics(
        self,
        actor_id: Optional[str],
        time_range: Optional[str] = None,
        filters: Optional[CohortFilters] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsResult:
        if not actor_id:
            raise UnauthenticatedError()

        now = now or utcnow()
        label = normalize_time_range(time_range)
        started = time.perf_counter()

        cohort = await self.records.list_accessible_records(
            actor_id, created_from=window_start(now, label)
        )
        cohort = apply_filters(cohort, filters)

        aggregate = aggregate_window(cohort, now, label)
        result = AnalyticsResult(
            **aggregate.model_dump(),
            time_range=label,
            trends=bucketize(cohort, now, label),
        )

        logger.log_performance(
            "analytics", (time.perf_counter() - started) * 1000,
            actor_id=actor_id, time_range=label, cohort_size=len(cohort),
        )
        return result
