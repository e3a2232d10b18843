"""
Case Record Model - individualized education plans
Read-only to the compliance and analytics code; edited by the host application
"""

from sqlalchemy import Column, String, DateTime, JSON, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from iep_monitor.core.database import Base
from iep_monitor.core.types import GUID, generate_uuid, utcnow


class CaseStatus(str, enum.Enum):
    """Lifecycle of a case record"""
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    ACTIVE = "active"
    EXPIRED = "expired"


class CaseRecord(Base):
    """
    One IEP case.

    goals is an ordered JSON list:
    [{"id": "g1", "area": "Reading", "description": "...", "progress": 40}]

    services is an ordered JSON list:
    [{"type": "Speech Therapy", "frequency": "2x weekly", "provider": "..."}]

    team_members may or may not contain owner_id.
    """
    __tablename__ = "case_records"

    __table_args__ = (
        Index('ix_case_records_owner_id', 'owner_id'),
        Index('ix_case_records_status', 'status'),
        Index('ix_case_records_created_at', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # Subject
    subject_name = Column(String(255), nullable=False)
    subject_id = Column(String(100), nullable=True)
    grade_level = Column(String(50), nullable=True)
    category = Column(String(255), nullable=True)  # Disability classification, free text

    status = Column(SQLEnum(CaseStatus), default=CaseStatus.DRAFT, nullable=False)

    # Free text so malformed dates from upstream forms stay representable
    meeting_date = Column(String(50), nullable=True)
    annual_review_date = Column(String(50), nullable=True)

    # Access
    owner_id = Column(GUID, nullable=False)
    team_members = Column(JSON, nullable=False, default=list)

    # Embedded content
    goals = Column(JSON, nullable=False, default=list)
    services = Column(JSON, nullable=False, default=list)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    progress_observations = relationship(
        "ProgressObservation", back_populates="case_record", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<CaseRecord {self.subject_name} ({self.status})>"

    @property
    def goal_ids(self):
        """Ids of embedded goals, in order"""
        return [g.get("id") for g in (self.goals or []) if isinstance(g, dict)]
