"""
Progress Service
Records goal progress observations and answers recency questions for the scanner
"""

from typing import Optional, List, Set
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from iep_monitor.core.exceptions import MalformedInputError
from iep_monitor.core.types import utcnow
from iep_monitor.models.progress import ProgressObservation
from iep_monitor.services.record_access import RecordAccessService


class ProgressService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.records = RecordAccessService(db)

    async def record_observation(
        self,
        actor_id: Optional[str],
        record_id: str,
        goal_id: str,
        value: float,
        observed_on: Optional[str] = None,
        notes: Optional[str] = None,
        intervention_used: Optional[str] = None,
    ) -> ProgressObservation:
        record = await self.records.get_accessible_record(actor_id, record_id)
        if goal_id not in record.goal_ids:
            raise MalformedInputError(
                f"Goal {goal_id} does not belong to case record {record_id}",
                field="goal_id",
                value=goal_id,
            )

        observation = ProgressObservation(
            case_record_id=record.id,
            goal_id=goal_id,
            value=value,
            observed_on=observed_on,
            notes=notes,
            intervention_used=intervention_used,
            recorded_by=actor_id,
            created_at=utcnow(),
        )
        self.db.add(observation)
        await self.db.commit()
        await self.db.refresh(observation)
        return observation

    async def list_observations(self, actor_id: Optional[str], record_id: str) -> List[ProgressObservation]:
        record = await self.records.get_accessible_record(actor_id, record_id)
        result = await self.db.execute(
            select(ProgressObservation)
            .where(ProgressObservation.case_record_id == record.id)
            .order_by(ProgressObservation.created_at.desc())
        )
        return list(result.scalars().all())

    async def goals_with_recent_progress(self, record_id: str, since: datetime) -> Set[str]:
        """Goal ids of the record with at least one observation created at or after since"""
        result = await self.db.execute(
            select(ProgressObservation.goal_id)
            .where(
                ProgressObservation.case_record_id == record_id,
                ProgressObservation.created_at >= since,
            )
            .distinct()
        )
        return set(result.scalars().all())
