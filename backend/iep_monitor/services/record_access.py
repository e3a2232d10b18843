"""
Record Access Service

Resolves which case records an actor may see. A record is visible when the
actor owns it OR appears in its team list; both clauses are tested on their
own because the team list does not always include the owner. Visibility is
all-or-nothing per record.
"""

from typing import Optional, List, Iterable
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from iep_monitor.models.case_record import CaseRecord
from iep_monitor.schemas.analytics import CohortFilters
from iep_monitor.core.exceptions import (
    UnauthenticatedError,
    AccessDeniedError,
    CaseRecordNotFoundError,
)


def can_access(record: CaseRecord, actor_id: Optional[str]) -> bool:
    """Owner or team member"""
    if not actor_id:
        return False
    if str(record.owner_id) == str(actor_id):
        return True
    return str(actor_id) in {str(m) for m in (record.team_members or [])}


def filter_accessible(records: Iterable[CaseRecord], actor_id: Optional[str]) -> List[CaseRecord]:
    return [r for r in records if can_access(r, actor_id)]


def apply_filters(records: Iterable[CaseRecord], filters: Optional[CohortFilters]) -> List[CaseRecord]:
    """Narrow a cohort by status / category / grade level (exact match)"""
    records = list(records)
    if filters is None or filters.is_empty():
        return records
    return [
        r for r in records
        if (filters.status is None or r.status == filters.status)
        and (not filters.category or r.category == filters.category)
        and (not filters.grade_level or r.grade_level == filters.grade_level)
    ]


class RecordAccessService:
    """Read filter over the case record store, used by every other service"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_accessible_records(
        self,
        actor_id: Optional[str],
        created_from: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
    ) -> List[CaseRecord]:
        """
        All records the actor can see, optionally restricted to a half-open
        creation window [created_from, created_before).

        Unauthenticated actors get an empty list.
        """
        if not actor_id:
            return []

        query = select(CaseRecord)
        if created_from is not None:
            query = query.where(CaseRecord.created_at >= created_from)
        if created_before is not None:
            query = query.where(CaseRecord.created_at < created_before)
        query = query.order_by(CaseRecord.created_at)

        result = await self.db.execute(query)
        return filter_accessible(result.scalars().all(), actor_id)

    async def list_owned_records(self, actor_id: Optional[str]) -> List[CaseRecord]:
        """Records created by the actor (fetch by owner)"""
        if not actor_id:
            return []

        result = await self.db.execute(
            select(CaseRecord)
            .where(CaseRecord.owner_id == actor_id)
            .order_by(CaseRecord.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_accessible_record(self, actor_id: Optional[str], record_id: str) -> CaseRecord:
        """Point lookup with the access check applied"""
        if not actor_id:
            raise UnauthenticatedError()

        record = await self.db.get(CaseRecord, record_id)
        if record is None:
            raise CaseRecordNotFoundError(record_id)

        if not can_access(record, actor_id):
            raise AccessDeniedError(
                "Access denied",
                resource_type="case_record",
                resource_id=record_id,
            )
        return record
