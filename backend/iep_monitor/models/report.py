"""
Report Snapshot Model - immutable copies of an analytics result
"""

from sqlalchemy import Column, String, DateTime, Text, JSON, Index, Enum as SQLEnum
import enum

from iep_monitor.core.database import Base
from iep_monitor.core.types import GUID, generate_uuid, utcnow


class ReportType(str, enum.Enum):
    SUMMARY = "summary"
    COMPLIANCE = "compliance"
    PROGRESS = "progress"
    DETAILED = "detailed"


class ReportStatus(str, enum.Enum):
    GENERATING = "generating"
    GENERATED = "generated"
    FAILED = "failed"


class ReportSnapshot(Base):
    """
    Stored analytics result.

    data holds the aggregation verbatim:
    {"overview": {...}, "status_distribution": [...], ..., "trends": [...]}
    """
    __tablename__ = "report_snapshots"

    __table_args__ = (
        Index('ix_report_snapshots_user_created', 'user_id', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, nullable=False)

    report_type = Column(SQLEnum(ReportType), nullable=False)
    time_range = Column(String(20), nullable=False)
    filters = Column(JSON, nullable=False, default=dict)
    data = Column(JSON, nullable=True)

    status = Column(SQLEnum(ReportStatus), default=ReportStatus.GENERATED, nullable=False)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ReportSnapshot {self.report_type} {self.time_range} ({self.status})>"
