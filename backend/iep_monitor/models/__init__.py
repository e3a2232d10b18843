# Re-export all models for convenient imports
from iep_monitor.models.case_record import CaseRecord, CaseStatus
from iep_monitor.models.progress import ProgressObservation
from iep_monitor.models.notification import Notification, NotificationType, NotificationPriority
from iep_monitor.models.report import ReportSnapshot, ReportType, ReportStatus

__all__ = [
    # Cases
    "CaseRecord",
    "CaseStatus",
    "ProgressObservation",
    # Notifications
    "Notification",
    "NotificationType",
    "NotificationPriority",
    # Reports
    "ReportSnapshot",
    "ReportType",
    "ReportStatus",
]
