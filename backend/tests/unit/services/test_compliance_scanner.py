"""
Unit Tests for the Compliance Scanner
Tests for: review deadline rules, goal staleness, scan isolation, dedup, timeout
"""
import asyncio
import pytest
from datetime import datetime, timedelta
from sqlalchemy import select

from iep_monitor.core.exceptions import MalformedInputError, ScanTimeoutError, UnauthenticatedError
from iep_monitor.core.types import utcnow
from iep_monitor.models import CaseStatus, Notification, NotificationType, NotificationPriority, ProgressObservation
from iep_monitor.services.compliance_scanner import (
    CaseSnapshot,
    ComplianceScanner,
    OVERDUE_REVIEW,
    REVIEW_DUE_SOON,
    REVIEW_UPCOMING,
    date_bucket,
    dedup_key,
    evaluate_goal_staleness,
    evaluate_review_deadline,
)

NOW = datetime(2024, 6, 15, 12, 0, 0)


def snapshot(case_factory, **overrides) -> CaseSnapshot:
    return CaseSnapshot.from_record(case_factory(**overrides))


class TestReviewDeadlineRule:

    def test_overdue_active(self, case_factory):
        alert = evaluate_review_deadline(snapshot(case_factory, annual_review_date="2024-06-14"), NOW)

        assert alert.kind == OVERDUE_REVIEW
        assert alert.type == NotificationType.COMPLIANCE_ALERT
        assert alert.priority == NotificationPriority.HIGH
        assert "overdue for annual review" in alert.message

    @pytest.mark.parametrize("status", [
        CaseStatus.DRAFT, CaseStatus.IN_REVIEW, CaseStatus.APPROVED, CaseStatus.EXPIRED,
    ])
    def test_inactive_never_overdue(self, case_factory, status):
        case = snapshot(case_factory, status=status, annual_review_date="2023-01-01")
        assert evaluate_review_deadline(case, NOW) is None

    def test_due_within_seven_days(self, case_factory):
        alert = evaluate_review_deadline(snapshot(case_factory, annual_review_date="2024-06-20"), NOW)

        assert alert.kind == REVIEW_DUE_SOON
        assert alert.type == NotificationType.IEP_DUE
        assert alert.priority == NotificationPriority.HIGH
        assert "within 7 days" in alert.message

    def test_exactly_seven_days_is_due_soon(self, case_factory):
        review = (NOW + timedelta(days=7)).isoformat()
        alert = evaluate_review_deadline(snapshot(case_factory, annual_review_date=review), NOW)
        assert alert.kind == REVIEW_DUE_SOON

    def test_due_within_thirty_days(self, case_factory):
        alert = evaluate_review_deadline(snapshot(case_factory, annual_review_date="2024-07-10"), NOW)

        assert alert.kind == REVIEW_UPCOMING
        assert alert.priority == NotificationPriority.MEDIUM
        assert "within 30 days" in alert.message

    def test_far_future_no_alert(self, case_factory):
        assert evaluate_review_deadline(snapshot(case_factory, annual_review_date="2024-09-01"), NOW) is None

    def test_timezone_aware_date(self, case_factory):
        alert = evaluate_review_deadline(
            snapshot(case_factory, annual_review_date="2024-06-16T00:00:00+02:00"), NOW
        )
        assert alert.kind == REVIEW_DUE_SOON

    @pytest.mark.parametrize("value", ["", None, "June 1st", "2024-13-40"])
    def test_malformed_date(self, case_factory, value):
        with pytest.raises(MalformedInputError):
            evaluate_review_deadline(snapshot(case_factory, annual_review_date=value), NOW)


class TestGoalStalenessRule:

    def test_one_alert_per_stale_goal(self, case_factory):
        case = snapshot(case_factory, goals=[
            {"id": "g1", "area": "Reading"},
            {"id": "g2", "area": "Math"},
            {"id": "g3", "area": "Writing"},
        ])
        alerts = evaluate_goal_staleness(case, {"g2"})

        assert [a.goal_id for a in alerts] == ["g1", "g3"]
        assert all(a.type == NotificationType.GOAL_UPDATE for a in alerts)
        assert all(a.priority == NotificationPriority.MEDIUM for a in alerts)
        assert '"Reading"' in alerts[0].message

    def test_goals_without_id_are_ignored(self, case_factory):
        case = snapshot(case_factory, goals=[{"area": "Reading"}, "junk"])
        assert case.goals == ()
        assert evaluate_goal_staleness(case, set()) == []


class TestDedupKey:

    def test_key_shape(self, case_factory):
        case = snapshot(case_factory, annual_review_date="2024-06-14")
        alert = evaluate_review_deadline(case, NOW)
        assert dedup_key(alert, NOW, "day") == f"{case.id}:-:{OVERDUE_REVIEW}:2024-06-15"

    def test_week_bucket(self):
        assert date_bucket(NOW, "week") == "2024-W24"


class TestComplianceScan:

    async def _notifications(self, db_session, user_id):
        result = await db_session.execute(select(Notification).where(Notification.user_id == user_id))
        return list(result.scalars().all())

    @pytest.mark.asyncio
    async def test_requires_actor(self, db_session):
        with pytest.raises(UnauthenticatedError):
            await ComplianceScanner(db_session).scan(None)

    @pytest.mark.asyncio
    async def test_alerts_go_to_invoking_actor(self, db_session, make_case, owner_id, teammate_id):
        yesterday = (utcnow() - timedelta(days=1)).date().isoformat()
        await make_case(annual_review_date=yesterday, team_members=[owner_id, teammate_id])

        result = await ComplianceScanner(db_session, dedupe=False).scan(teammate_id)

        assert result.alerts_created == 1
        alerts = await self._notifications(db_session, teammate_id)
        assert len(alerts) == 1
        assert alerts[0].type == NotificationType.COMPLIANCE_ALERT
        assert await self._notifications(db_session, owner_id) == []

    @pytest.mark.asyncio
    async def test_repeated_scans_duplicate_alerts(self, db_session, make_case, owner_id):
        yesterday = (utcnow() - timedelta(days=1)).date().isoformat()
        record = await make_case(annual_review_date=yesterday)
        scanner = ComplianceScanner(db_session, dedupe=False)

        await scanner.scan(owner_id)
        await scanner.scan(owner_id)

        alerts = [a for a in await self._notifications(db_session, owner_id)
                  if a.type == NotificationType.COMPLIANCE_ALERT]
        assert len(alerts) == 2
        assert all(a.related_id == record.id for a in alerts)

    @pytest.mark.asyncio
    async def test_dedupe_suppresses_repeat_alerts(self, db_session, make_case, owner_id):
        yesterday = (utcnow() - timedelta(days=1)).date().isoformat()
        await make_case(annual_review_date=yesterday, goals=[{"id": "g1", "area": "Reading", "progress": 10}])
        scanner = ComplianceScanner(db_session, dedupe=True)

        first = await scanner.scan(owner_id)
        second = await scanner.scan(owner_id)

        assert first.alerts_created == 2
        assert second.alerts_created == 0
        assert second.alerts_skipped == 2
        assert len(await self._notifications(db_session, owner_id)) == 2

    @pytest.mark.asyncio
    async def test_at_most_one_review_alert_per_record(self, db_session, make_case, owner_id):
        soon = (utcnow() + timedelta(days=3)).date().isoformat()
        await make_case(annual_review_date=soon)

        await ComplianceScanner(db_session).scan(owner_id)

        review_types = {NotificationType.COMPLIANCE_ALERT, NotificationType.IEP_DUE}
        alerts = [a for a in await self._notifications(db_session, owner_id) if a.type in review_types]
        assert len(alerts) == 1
        assert alerts[0].priority == NotificationPriority.HIGH

    @pytest.mark.asyncio
    async def test_stale_goals_use_recent_observations(self, db_session, make_case, owner_id):
        record = await make_case(goals=[
            {"id": "g1", "area": "Reading", "progress": 20},
            {"id": "g2", "area": "Math", "progress": 60},
            {"id": "g3", "area": "Writing", "progress": 0},
        ])
        now = utcnow()
        db_session.add_all([
            ProgressObservation(case_record_id=record.id, goal_id="g1", value=3,
                                recorded_by=owner_id, created_at=now - timedelta(days=5)),
            ProgressObservation(case_record_id=record.id, goal_id="g2", value=7,
                                recorded_by=owner_id, created_at=now - timedelta(days=45)),
        ])
        await db_session.commit()

        result = await ComplianceScanner(db_session).scan(owner_id)

        goal_alerts = [a for a in await self._notifications(db_session, owner_id)
                       if a.type == NotificationType.GOAL_UPDATE]
        assert result.alerts_created == 2
        assert sorted(a.message for a in goal_alerts) == sorted([
            f'Goal "Math" for {record.subject_name} hasn\'t been updated in 30 days.',
            f'Goal "Writing" for {record.subject_name} hasn\'t been updated in 30 days.',
        ])

    @pytest.mark.asyncio
    async def test_malformed_record_does_not_stop_scan(self, db_session, make_case, owner_id):
        broken = await make_case(annual_review_date="sometime in May")
        yesterday = (utcnow() - timedelta(days=1)).date().isoformat()
        await make_case(annual_review_date=yesterday)

        result = await ComplianceScanner(db_session).scan(owner_id)

        assert result.records_scanned == 2
        assert result.alerts_created == 1
        assert [f.record_id for f in result.failures] == [broken.id]

    @pytest.mark.asyncio
    async def test_malformed_review_date_keeps_goal_alerts(self, db_session, make_case, owner_id):
        broken = await make_case(
            annual_review_date="sometime in May",
            goals=[{"id": "g1", "area": "Reading", "progress": 30}],
        )

        result = await ComplianceScanner(db_session).scan(owner_id)

        alerts = await self._notifications(db_session, owner_id)
        assert [a.type for a in alerts] == [NotificationType.GOAL_UPDATE]
        assert alerts[0].related_id == broken.id
        assert result.alerts_created == 1
        assert [f.record_id for f in result.failures] == [broken.id]
        assert "annual review date" in result.failures[0].reason

    @pytest.mark.asyncio
    async def test_only_accessible_records_are_scanned(self, db_session, make_case, owner_id, outsider_id):
        yesterday = (utcnow() - timedelta(days=1)).date().isoformat()
        await make_case(owner_id=outsider_id, team_members=[outsider_id], annual_review_date=yesterday)

        result = await ComplianceScanner(db_session).scan(owner_id)

        assert result.records_scanned == 0
        assert result.alerts_created == 0

    @pytest.mark.asyncio
    async def test_timeout_discards_in_flight_record(self, db_session, make_case, owner_id, monkeypatch):
        yesterday = (utcnow() - timedelta(days=1)).date().isoformat()
        await make_case(annual_review_date=yesterday)
        scanner = ComplianceScanner(db_session, timeout_seconds=0.05)

        async def slow_evaluate(case, now):
            await asyncio.sleep(1)
            return [], None

        monkeypatch.setattr(scanner, "evaluate", slow_evaluate)

        with pytest.raises(ScanTimeoutError):
            await scanner.scan(owner_id)
        assert await self._notifications(db_session, owner_id) == []

    @pytest.mark.asyncio
    async def test_timeout_keeps_alerts_of_finished_records(self, db_session, make_case, owner_id, monkeypatch):
        now = utcnow()
        yesterday = (now - timedelta(days=1)).date().isoformat()
        finished = await make_case(annual_review_date=yesterday, created_at=now - timedelta(days=2))
        slow = await make_case(annual_review_date=yesterday, created_at=now - timedelta(days=1))
        scanner = ComplianceScanner(db_session, timeout_seconds=0.5)
        evaluate = scanner.evaluate

        async def slow_on_second(case, now):
            if case.id == slow.id:
                await asyncio.sleep(5)
            return await evaluate(case, now)

        monkeypatch.setattr(scanner, "evaluate", slow_on_second)

        with pytest.raises(ScanTimeoutError) as exc_info:
            await scanner.scan(owner_id)

        assert exc_info.value.details["records_completed"] == 1
        alerts = await self._notifications(db_session, owner_id)
        assert [a.related_id for a in alerts] == [finished.id]
