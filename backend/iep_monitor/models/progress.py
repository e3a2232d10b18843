"""
Progress Observation Model - data points recorded against a goal
Only the creation time matters for staleness checks
"""

from sqlalchemy import Column, String, DateTime, Float, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from iep_monitor.core.database import Base
from iep_monitor.core.types import GUID, generate_uuid, utcnow


class ProgressObservation(Base):
    """A single progress data point for (case record, goal)"""
    __tablename__ = "progress_observations"

    __table_args__ = (
        Index('ix_progress_record_goal', 'case_record_id', 'goal_id'),
        Index('ix_progress_created_at', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    case_record_id = Column(GUID, ForeignKey("case_records.id", ondelete="CASCADE"), nullable=False)
    goal_id = Column(String(100), nullable=False)

    value = Column(Float, nullable=False)
    observed_on = Column(String(50), nullable=True)  # Date the data was collected
    notes = Column(Text, nullable=True)
    intervention_used = Column(String(255), nullable=True)
    recorded_by = Column(GUID, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    case_record = relationship("CaseRecord", back_populates="progress_observations")

    def __repr__(self):
        return f"<ProgressObservation {self.case_record_id}/{self.goal_id} = {self.value}>"
