from iep_monitor.schemas.analytics import (
    AnalyticsResult,
    CohortFilters,
    ComplianceSummary,
    DistributionEntry,
    Overview,
    TrendBucket,
    WindowAggregate,
    duration_for,
)
from iep_monitor.schemas.case_record import (
    CaseRecordResponse,
    MeetingReminderRequest,
    MeetingReminderResponse,
    ProgressObservationCreate,
    ProgressObservationResponse,
)
from iep_monitor.schemas.compliance import AlertDraft, ScanFailure, ScanResult
from iep_monitor.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from iep_monitor.schemas.report import ReportCreate, ReportListResponse, ReportResponse, ReportSummary
