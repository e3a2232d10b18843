"""
Window Aggregator

Pure functions over an already access-filtered cohort. Each call builds its
own counters and returns immutable value objects.

Rates and percentages use round-half-up and guard every zero denominator:
    goal_completion_rate -> 0 when there are no goals
    compliance_rate      -> 100 when the cohort is empty
    percentage           -> 0 when the total is 0
"""

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from iep_monitor.core.config import settings
from iep_monitor.core.types import parse_calendar_date
from iep_monitor.models.case_record import CaseRecord, CaseStatus
from iep_monitor.schemas.analytics import (
    ComplianceSummary,
    DistributionEntry,
    Overview,
    WindowAggregate,
    duration_for,
)

UNSPECIFIED = "unspecified"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent(numerator: int, denominator: int, when_empty: int = 0) -> int:
    if denominator <= 0:
        return when_empty
    return round_half_up(numerator / denominator * 100)


def coerce_progress(value) -> Optional[float]:
    """Goal progress as a number, or None when it cannot be read"""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def review_date_or_none(record: CaseRecord) -> Optional[datetime]:
    try:
        return parse_calendar_date(record.annual_review_date)
    except (TypeError, ValueError):
        return None


def window_start(now: datetime, time_range: Optional[str]) -> datetime:
    return now - duration_for(time_range)


def in_window(records: Iterable[CaseRecord], start: datetime) -> List[CaseRecord]:
    """Records created at or after start"""
    return [r for r in records if r.created_at is not None and r.created_at >= start]


def _label(value) -> str:
    if value is None or value == "":
        return UNSPECIFIED
    return str(getattr(value, "value", value))


def distribution(labels: Iterable[Optional[str]], total: Optional[int] = None) -> List[DistributionEntry]:
    """
    Count labels and express each as a percentage of total (defaults to the
    number of labels). Ordered by count descending, then label.
    """
    counts = Counter(_label(label) for label in labels)
    denominator = sum(counts.values()) if total is None else total
    return [
        DistributionEntry(label=label, count=count, percentage=percent(count, denominator))
        for label, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


def service_types(records: Iterable[CaseRecord]) -> List[Optional[str]]:
    """One entry per service instance, across all records"""
    types = []
    for record in records:
        for service in record.services or []:
            if isinstance(service, dict):
                types.append(service.get("type"))
    return types


def goal_metrics(records: Iterable[CaseRecord]) -> Tuple[int, int, int]:
    """(total, completed, in_progress)"""
    total = completed = in_progress = 0
    for record in records:
        for goal in record.goals or []:
            total += 1
            progress = coerce_progress(goal.get("progress") if isinstance(goal, dict) else None)
            if progress is None:
                continue
            if progress >= 100:
                completed += 1
            elif progress > 0:
                in_progress += 1
    return total, completed, in_progress


def compliance_summary(
    records: Sequence[CaseRecord],
    now: datetime,
    upcoming_days: Optional[int] = None,
) -> ComplianceSummary:
    if upcoming_days is None:
        upcoming_days = settings.UPCOMING_REVIEW_DAYS
    horizon = now + timedelta(days=upcoming_days)

    upcoming = overdue = 0
    for record in records:
        review_date = review_date_or_none(record)
        if review_date is None:
            continue
        if now <= review_date <= horizon:
            upcoming += 1
        elif review_date < now and record.status == CaseStatus.ACTIVE:
            overdue += 1

    total = len(records)
    return ComplianceSummary(
        upcoming_reviews=upcoming,
        overdue_reviews=overdue,
        compliance_rate=percent(total - overdue, total, when_empty=100),
    )


def aggregate_window(
    records: Iterable[CaseRecord],
    now: datetime,
    time_range: Optional[str] = None,
    upcoming_days: Optional[int] = None,
) -> WindowAggregate:
    """
    Restrict the cohort to the window [now - duration, now] by creation time
    and compute overview, distributions and compliance counts.
    """
    cohort = in_window(records, window_start(now, time_range))
    total = len(cohort)

    statuses = Counter(r.status for r in cohort)
    total_goals, completed_goals, in_progress_goals = goal_metrics(cohort)

    overview = Overview(
        total_cases=total,
        active_cases=statuses.get(CaseStatus.ACTIVE, 0),
        draft_cases=statuses.get(CaseStatus.DRAFT, 0),
        in_review_cases=statuses.get(CaseStatus.IN_REVIEW, 0),
        total_goals=total_goals,
        completed_goals=completed_goals,
        in_progress_goals=in_progress_goals,
        goal_completion_rate=percent(completed_goals, total_goals),
    )

    return WindowAggregate(
        overview=overview,
        status_distribution=distribution((r.status for r in cohort), total),
        disability_distribution=distribution((r.category for r in cohort), total),
        grade_distribution=distribution((r.grade_level for r in cohort), total),
        service_distribution=distribution(service_types(cohort)),
        compliance=compliance_summary(cohort, now, upcoming_days),
    )
