"""
Compliance Scanner

Evaluates every case record the actor can see against the review-deadline
rules and the goal staleness rule, and writes one notification per finding
to the actor's inbox.

Review deadline (at most one per record per scan):
    review date < now and status active  -> compliance_alert, high
    now <= review date <= now + 7d       -> iep_due, high
    now + 7d < review date <= now + 30d  -> iep_due, medium

Goal staleness (independent, per goal):
    no progress observation in the last 30 days -> goal_update, medium

Records are evaluated and committed one at a time. A record whose review date
cannot be parsed skips the review rule, still gets its goal staleness alerts,
and is reported in ScanResult.failures. A storage error on one record is
reported the same way and the scan moves on.

Repeated scans emit repeated alerts unless SCAN_DEDUPE_ENABLED is set, in
which case an alert whose dedup key already exists for the recipient is
skipped. The check-then-insert is not atomic across concurrent scans.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, List, Tuple, Iterable, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from iep_monitor.core.config import settings
from iep_monitor.core.exceptions import UnauthenticatedError, MalformedInputError, ScanTimeoutError
from iep_monitor.core.logging_config import logger
from iep_monitor.core.types import parse_calendar_date, utcnow
from iep_monitor.models.case_record import CaseRecord, CaseStatus
from iep_monitor.models.notification import NotificationType, NotificationPriority
from iep_monitor.schemas.compliance import AlertDraft, ScanFailure, ScanResult
from iep_monitor.services.notification_service import NotificationService
from iep_monitor.services.progress_service import ProgressService
from iep_monitor.services.record_access import RecordAccessService

OVERDUE_REVIEW = "overdue_review"
REVIEW_DUE_SOON = "review_due_7"
REVIEW_UPCOMING = "review_due_30"
STALE_GOAL = "stale_goal"


@dataclass(frozen=True)
class CaseSnapshot:
    """The fields the rules read, copied out of the ORM row"""
    id: str
    subject_name: str
    status: CaseStatus
    annual_review_date: Optional[str]
    goals: Tuple[Tuple[str, str], ...]  # (goal id, area)

    @classmethod
    def from_record(cls, record: CaseRecord) -> "CaseSnapshot":
        goals = tuple(
            (str(g.get("id")), str(g.get("area") or "Untitled goal"))
            for g in (record.goals or [])
            if isinstance(g, dict) and g.get("id") is not None
        )
        return cls(
            id=str(record.id),
            subject_name=record.subject_name,
            status=record.status,
            annual_review_date=record.annual_review_date,
            goals=goals,
        )


def evaluate_review_deadline(
    case: CaseSnapshot,
    now: datetime,
    due_soon_days: Optional[int] = None,
    upcoming_days: Optional[int] = None,
) -> Optional[AlertDraft]:
    """Review-deadline rule chain; raises MalformedInputError on a bad date"""
    if due_soon_days is None:
        due_soon_days = settings.DUE_SOON_DAYS
    if upcoming_days is None:
        upcoming_days = settings.UPCOMING_REVIEW_DAYS

    try:
        review_date = parse_calendar_date(case.annual_review_date)
    except (TypeError, ValueError):
        raise MalformedInputError(
            f"Unparsable annual review date for case record {case.id}",
            field="annual_review_date",
            value=case.annual_review_date,
        )

    due_soon = now + timedelta(days=due_soon_days)
    upcoming = now + timedelta(days=upcoming_days)

    if review_date < now and case.status == CaseStatus.ACTIVE:
        return AlertDraft(
            kind=OVERDUE_REVIEW,
            type=NotificationType.COMPLIANCE_ALERT,
            priority=NotificationPriority.HIGH,
            title="Overdue IEP Review",
            message=f"IEP for {case.subject_name} is overdue for annual review.",
            record_id=case.id,
        )
    elif now <= review_date <= due_soon:
        return AlertDraft(
            kind=REVIEW_DUE_SOON,
            type=NotificationType.IEP_DUE,
            priority=NotificationPriority.HIGH,
            title="IEP Review Due Soon",
            message=f"IEP for {case.subject_name} is due for review within {due_soon_days} days.",
            record_id=case.id,
        )
    elif due_soon < review_date <= upcoming:
        return AlertDraft(
            kind=REVIEW_UPCOMING,
            type=NotificationType.IEP_DUE,
            priority=NotificationPriority.MEDIUM,
            title="Upcoming IEP Review",
            message=f"IEP for {case.subject_name} is due for review within {upcoming_days} days.",
            record_id=case.id,
        )
    return None


def evaluate_goal_staleness(
    case: CaseSnapshot,
    recent_goal_ids: Iterable[str],
    stale_days: Optional[int] = None,
) -> List[AlertDraft]:
    """One goal_update alert per goal without a recent observation"""
    if stale_days is None:
        stale_days = settings.STALE_PROGRESS_DAYS
    recent = set(recent_goal_ids)
    return [
        AlertDraft(
            kind=STALE_GOAL,
            type=NotificationType.GOAL_UPDATE,
            priority=NotificationPriority.MEDIUM,
            title="Goal Progress Update Needed",
            message=f'Goal "{area}" for {case.subject_name} hasn\'t been updated in {stale_days} days.',
            record_id=case.id,
            goal_id=goal_id,
        )
        for goal_id, area in case.goals
        if goal_id not in recent
    ]


def date_bucket(now: datetime, granularity: Optional[str] = None) -> str:
    granularity = granularity or settings.SCAN_DEDUPE_BUCKET
    if granularity == "week":
        year, week, _ = now.isocalendar()
        return f"{year}-W{week:02d}"
    return now.date().isoformat()


def dedup_key(draft: AlertDraft, now: datetime, granularity: Optional[str] = None) -> str:
    return f"{draft.record_id}:{draft.goal_id or '-'}:{draft.kind}:{date_bucket(now, granularity)}"


class ComplianceScanner:
    """Caller-triggered scan of the actor's accessible case records"""

    def __init__(
        self,
        db: AsyncSession,
        dedupe: Optional[bool] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.db = db
        self.dedupe = settings.SCAN_DEDUPE_ENABLED if dedupe is None else dedupe
        self.timeout_seconds = settings.SCAN_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.records = RecordAccessService(db)
        self.notifications = NotificationService(db)
        self.progress = ProgressService(db)

    async def evaluate(self, case: CaseSnapshot, now: datetime) -> Tuple[List[AlertDraft], Optional[str]]:
        """
        All alerts for one record, plus the reason the review rule was skipped
        when the review date is unusable. The only I/O is the progress lookup.
        """
        drafts = []
        review_error = None
        try:
            review_alert = evaluate_review_deadline(case, now)
        except MalformedInputError as e:
            review_alert = None
            review_error = e.message
        if review_alert is not None:
            drafts.append(review_alert)

        if case.goals:
            since = now - timedelta(days=settings.STALE_PROGRESS_DAYS)
            recent: Set[str] = await self.progress.goals_with_recent_progress(case.id, since)
            drafts.extend(evaluate_goal_staleness(case, recent))
        return drafts, review_error

    async def scan(self, actor_id: Optional[str], now: Optional[datetime] = None) -> ScanResult:
        if not actor_id:
            raise UnauthenticatedError()
        now = now or utcnow()

        records = await self.records.list_accessible_records(actor_id)
        cases = [CaseSnapshot.from_record(r) for r in records]
        result = ScanResult()

        logger.log_scan_event("started", actor_id, records=len(cases), dedupe=self.dedupe)
        try:
            await asyncio.wait_for(self._scan_cases(actor_id, cases, now, result), self.timeout_seconds)
        except asyncio.TimeoutError:
            await self.db.rollback()
            logger.warning(
                f"Compliance scan timed out after {self.timeout_seconds}s "
                f"({result.records_scanned}/{len(cases)} records done)",
                extra={"event_type": "compliance_scan", "actor_id": actor_id},
            )
            raise ScanTimeoutError(self.timeout_seconds, result.records_scanned)

        logger.log_scan_event(
            "finished", actor_id,
            records=result.records_scanned,
            alerts_created=result.alerts_created,
            alerts_skipped=result.alerts_skipped,
            failures=len(result.failures),
        )
        return result

    async def _scan_cases(self, actor_id: str, cases: List[CaseSnapshot], now: datetime, result: ScanResult) -> None:
        for case in cases:
            try:
                drafts, review_error = await self.evaluate(case, now)
                created, skipped = await self._write(actor_id, drafts, now)
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.log_error_with_context(e, "compliance_scan", record_id=case.id)
                self._record_failure(result, case, f"{type(e).__name__}: {e}")
                continue

            result.records_scanned += 1
            result.alerts_created += created
            result.alerts_skipped += skipped
            if review_error:
                self._record_failure(result, case, review_error)

    async def _write(self, actor_id: str, drafts: List[AlertDraft], now: datetime) -> Tuple[int, int]:
        created = skipped = 0
        for draft in drafts:
            key = dedup_key(draft, now)
            if self.dedupe and await self.notifications.exists_for_key(actor_id, key):
                skipped += 1
                continue
            await self.notifications.create_notification(
                user_id=actor_id,
                type=draft.type,
                title=draft.title,
                message=draft.message,
                priority=draft.priority,
                related_id=draft.record_id,
                action_url=f"/cases/{draft.record_id}",
                dedup_key=key,
            )
            logger.debug(f"Alert {draft.kind} for {draft.record_id} goal={draft.goal_id or '-'}")
            created += 1
        return created, skipped

    @staticmethod
    def _record_failure(result: ScanResult, case: CaseSnapshot, reason: str) -> None:
        logger.warning(
            f"Compliance scan problem with case record {case.id}: {reason}",
            extra={"event_type": "compliance_scan_failure", "record_id": case.id},
        )
        result.failures.append(ScanFailure(record_id=case.id, reason=reason))
