"""
Unit Tests for the HTTP API
"""
import pytest
from httpx import AsyncClient

from iep_monitor.core.config import settings
from iep_monitor.models import CaseStatus, Notification, NotificationType, NotificationPriority


class TestActorResolution:
    """Every endpoint except the case list needs an actor header"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", [
        ("get", "/api/v1/analytics"),
        ("post", "/api/v1/compliance/scan"),
        ("get", "/api/v1/notifications"),
        ("get", "/api/v1/notifications/unread-count"),
        ("get", "/api/v1/reports"),
    ])
    async def test_missing_actor_is_unauthenticated(self, client: AsyncClient, method, path):
        response = await getattr(client, method)(path)

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_blank_actor_is_unauthenticated(self, client: AsyncClient):
        response = await client.get('/api/v1/analytics', headers={settings.ACTOR_HEADER: '   '})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_anonymous_case_list_is_empty(self, client: AsyncClient, make_case):
        await make_case()

        response = await client.get('/api/v1/cases')

        assert response.status_code == 200
        assert response.json() == []


class TestCases:

    @pytest.mark.asyncio
    async def test_list_and_get(self, client: AsyncClient, make_case, actor_headers):
        record = await make_case(goals=[{"id": "g1", "area": "Reading", "progress": 40}])

        listed = await client.get('/api/v1/cases', headers=actor_headers)
        fetched = await client.get(f'/api/v1/cases/{record.id}', headers=actor_headers)

        assert [c["id"] for c in listed.json()] == [record.id]
        assert fetched.status_code == 200
        assert fetched.json()["goals"][0]["id"] == "g1"

    @pytest.mark.asyncio
    async def test_outsider_gets_403(self, client: AsyncClient, make_case, outsider_id):
        record = await make_case()

        response = await client.get(
            f'/api/v1/cases/{record.id}', headers={settings.ACTOR_HEADER: outsider_id}
        )

        assert response.status_code == 403
        assert response.json()["details"]["resource_type"] == "case_record"

    @pytest.mark.asyncio
    async def test_missing_case_gets_404(self, client: AsyncClient, actor_headers):
        response = await client.get('/api/v1/cases/nonexistent-case-id', headers=actor_headers)

        assert response.status_code == 404
        assert response.json() == {
            "detail": "case_record not found: nonexistent-case-id",
            "code": "CASE_RECORD_NOT_FOUND",
            "message": "case_record not found: nonexistent-case-id",
            "details": {"resource_type": "case_record", "resource_id": "nonexistent-case-id"},
        }

    @pytest.mark.asyncio
    async def test_progress_roundtrip(self, client: AsyncClient, make_case, actor_headers):
        record = await make_case(goals=[{"id": "g1", "area": "Reading"}])

        created = await client.post(
            f'/api/v1/cases/{record.id}/progress',
            json={"goal_id": "g1", "value": 55, "notes": "Reading 40 wpm"},
            headers=actor_headers,
        )
        listed = await client.get(f'/api/v1/cases/{record.id}/progress', headers=actor_headers)

        assert created.status_code == 201
        assert [o["goal_id"] for o in listed.json()] == ["g1"]

    @pytest.mark.asyncio
    async def test_progress_unknown_goal_is_422(self, client: AsyncClient, make_case, actor_headers):
        record = await make_case(goals=[{"id": "g1", "area": "Reading"}])

        response = await client.post(
            f'/api/v1/cases/{record.id}/progress',
            json={"goal_id": "nope", "value": 55},
            headers=actor_headers,
        )

        assert response.status_code == 422
        assert response.json()["code"] == "MALFORMED_INPUT"

    @pytest.mark.asyncio
    async def test_meeting_reminder(self, client: AsyncClient, make_case, actor_headers, owner_id, teammate_id):
        record = await make_case(team_members=[teammate_id])

        response = await client.post(
            f'/api/v1/cases/{record.id}/meeting-reminders',
            json={"meeting_date": "2024-09-01"},
            headers=actor_headers,
        )

        assert response.status_code == 200
        assert sorted(response.json()["recipients"]) == sorted([owner_id, teammate_id])


class TestAnalytics:

    @pytest.mark.asyncio
    async def test_shape(self, client: AsyncClient, make_case, actor_headers):
        await make_case(services=[{"type": "Speech Therapy"}])

        response = await client.get('/api/v1/analytics?time_range=quarter', headers=actor_headers)
        body = response.json()

        assert response.status_code == 200
        assert body["time_range"] == "quarter"
        assert body["overview"]["total_cases"] == 1
        assert body["service_distribution"] == [{"label": "Speech Therapy", "count": 1, "percentage": 100}]
        assert len(body["trends"]) == 6
        assert set(body["compliance"]) == {"upcoming_reviews", "overdue_reviews", "compliance_rate"}

    @pytest.mark.asyncio
    async def test_status_filter(self, client: AsyncClient, make_case, actor_headers):
        await make_case()
        await make_case(status=CaseStatus.DRAFT)

        response = await client.get('/api/v1/analytics?status=draft', headers=actor_headers)

        assert response.json()["overview"]["total_cases"] == 1

    @pytest.mark.asyncio
    async def test_invalid_status_filter(self, client: AsyncClient, actor_headers):
        response = await client.get('/api/v1/analytics?status=archived', headers=actor_headers)

        assert response.status_code == 422


class TestComplianceScan:

    @pytest.mark.asyncio
    async def test_scan_creates_alerts_for_actor(self, client: AsyncClient, make_case, actor_headers):
        await make_case(annual_review_date="2000-01-01")

        scan = await client.post('/api/v1/compliance/scan', headers=actor_headers)
        inbox = await client.get('/api/v1/notifications', headers=actor_headers)

        assert scan.status_code == 200
        assert scan.json()["alerts_created"] == 1
        assert scan.json()["failures"] == []
        assert inbox.json()["unread_count"] == 1
        assert inbox.json()["notifications"][0]["type"] == "compliance_alert"


class TestNotifications:

    async def _notification(self, db_session, user_id):
        notification = Notification(
            user_id=user_id,
            type=NotificationType.SYSTEM_UPDATE,
            title="Heads up",
            message="Something changed",
            priority=NotificationPriority.LOW,
        )
        db_session.add(notification)
        await db_session.commit()
        return notification

    @pytest.mark.asyncio
    async def test_mark_read(self, client: AsyncClient, db_session, owner_id, actor_headers):
        notification = await self._notification(db_session, owner_id)

        response = await client.post(f'/api/v1/notifications/{notification.id}/read', headers=actor_headers)
        count = await client.get('/api/v1/notifications/unread-count', headers=actor_headers)

        assert response.status_code == 200
        assert response.json()["read"] is True
        assert response.json()["read_at"] is not None
        assert count.json() == {"unread_count": 0}

    @pytest.mark.asyncio
    async def test_mark_someone_elses_is_403(self, client: AsyncClient, db_session, owner_id, outsider_id):
        notification = await self._notification(db_session, owner_id)

        response = await client.post(
            f'/api/v1/notifications/{notification.id}/read',
            headers={settings.ACTOR_HEADER: outsider_id},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client: AsyncClient, db_session, owner_id, actor_headers):
        for _ in range(2):
            await self._notification(db_session, owner_id)

        response = await client.post('/api/v1/notifications/read-all', headers=actor_headers)

        assert response.json() == {"marked": 2}


class TestReports:

    @pytest.mark.asyncio
    async def test_create_list_get(self, client: AsyncClient, make_case, actor_headers, owner_id):
        await make_case()

        created = await client.post(
            '/api/v1/reports',
            json={"report_type": "summary", "time_range": "month", "filters": {"grade_level": "5"}},
            headers=actor_headers,
        )
        report_id = created.json()["id"]
        listed = await client.get('/api/v1/reports', headers=actor_headers)
        fetched = await client.get(f'/api/v1/reports/{report_id}', headers=actor_headers)

        assert created.status_code == 201
        assert created.json()["status"] == "generated"
        assert created.json()["filters"] == {"grade_level": "5"}
        assert [r["id"] for r in listed.json()["reports"]] == [report_id]
        assert fetched.json()["user_id"] == owner_id
        assert fetched.json()["data"]["overview"]["total_cases"] == 1

    @pytest.mark.asyncio
    async def test_other_users_report_is_403(self, client: AsyncClient, actor_headers, outsider_id):
        created = await client.post('/api/v1/reports', json={"report_type": "compliance"}, headers=actor_headers)

        response = await client.get(
            f'/api/v1/reports/{created.json()["id"]}',
            headers={settings.ACTOR_HEADER: outsider_id},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_report_type(self, client: AsyncClient, actor_headers):
        response = await client.post('/api/v1/reports', json={"report_type": "weekly"}, headers=actor_headers)

        assert response.status_code == 422


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get('/api/v1/health')

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
