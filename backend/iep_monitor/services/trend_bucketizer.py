"""
Trend Bucketizer

Splits [now - duration, now) into equal half-open buckets, oldest first, and
counts records by creation time. Empty buckets are reported with zero counts.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from iep_monitor.core.config import settings
from iep_monitor.models.case_record import CaseRecord, CaseStatus
from iep_monitor.schemas.analytics import TrendBucket, duration_for


def bucket_bounds(now: datetime, duration: timedelta, buckets: int) -> List[Tuple[datetime, datetime]]:
    """
    Contiguous [start, end) pairs covering [now - duration, now).

    Bounds are computed from now so the last bucket ends exactly at now and
    each end equals the next start.
    """
    if buckets < 1:
        raise ValueError("buckets must be >= 1")
    period = duration / buckets
    return [
        (now - (buckets - i) * period, now - (buckets - i - 1) * period)
        for i in range(buckets)
    ]


def bucketize(
    records: Iterable[CaseRecord],
    now: datetime,
    time_range: Optional[str] = None,
    buckets: Optional[int] = None,
) -> List[TrendBucket]:
    """Count records created, and active ones among them, per bucket"""
    if buckets is None:
        buckets = settings.TREND_BUCKETS

    records = [r for r in records if r.created_at is not None]
    trends = []
    for index, (start, end) in enumerate(bucket_bounds(now, duration_for(time_range), buckets), start=1):
        members = [r for r in records if start <= r.created_at < end]
        trends.append(TrendBucket(
            period=index,
            date=start.date().isoformat(),
            cases_created=len(members),
            active_cases=sum(1 for r in members if r.status == CaseStatus.ACTIVE),
        ))
    return trends
