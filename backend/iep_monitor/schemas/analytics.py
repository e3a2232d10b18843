"""
Analytics value objects

Everything here is immutable; the aggregator returns new objects on every
call and never shares an accumulator between calls.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import timedelta

from iep_monitor.models.case_record import CaseStatus


TIME_RANGE_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}
DEFAULT_TIME_RANGE = "year"


def duration_for(time_range: Optional[str]) -> timedelta:
    """Window length for a range label; unknown labels fall back to a year"""
    days = TIME_RANGE_DAYS.get((time_range or "").lower(), TIME_RANGE_DAYS[DEFAULT_TIME_RANGE])
    return timedelta(days=days)


class CohortFilters(BaseModel):
    """Optional narrowing of the cohort before aggregation"""
    model_config = ConfigDict(frozen=True)

    status: Optional[CaseStatus] = None
    category: Optional[str] = None
    grade_level: Optional[str] = None

    def is_empty(self) -> bool:
        return self.status is None and not self.category and not self.grade_level


class DistributionEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    count: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0)


class Overview(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_cases: int = 0
    active_cases: int = 0
    draft_cases: int = 0
    in_review_cases: int = 0
    total_goals: int = 0
    completed_goals: int = 0
    in_progress_goals: int = 0
    goal_completion_rate: int = 0


class ComplianceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    upcoming_reviews: int = 0
    overdue_reviews: int = 0
    compliance_rate: int = 100


class TrendBucket(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: int = Field(..., ge=1)
    date: str  # ISO date of the bucket start
    cases_created: int = Field(0, ge=0)
    active_cases: int = Field(0, ge=0)


class WindowAggregate(BaseModel):
    """Window Aggregator output, without trends"""
    model_config = ConfigDict(frozen=True)

    overview: Overview
    status_distribution: List[DistributionEntry]
    disability_distribution: List[DistributionEntry]
    grade_distribution: List[DistributionEntry]
    service_distribution: List[DistributionEntry]
    compliance: ComplianceSummary


class AnalyticsResult(WindowAggregate):
    """Combined aggregation and trend view handed to callers and snapshots"""

    time_range: str
    trends: List[TrendBucket]
