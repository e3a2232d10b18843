"""
Custom Exceptions for the IEP Compliance Monitor
================================================

Services raise these; the API layer maps them to HTTP responses through
a single exception handler (see main.py).

Usage:
    from iep_monitor.core.exceptions import CaseRecordNotFoundError, AccessDeniedError

    if not record:
        raise CaseRecordNotFoundError(record_id)
"""

from typing import Optional, Any, Dict


class IEPMonitorError(Exception):
    """Base exception for all IEP Compliance Monitor errors"""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class UnauthenticatedError(IEPMonitorError):
    """No resolved actor for the call"""

    http_status = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, code="UNAUTHENTICATED")


class AccessDeniedError(IEPMonitorError):
    """Actor is not allowed to read or mutate the target"""

    http_status = 403

    def __init__(self, message: str = "Access denied", resource_type: Optional[str] = None,
                 resource_id: Optional[str] = None):
        details = {}
        if resource_type:
            details = {"resource_type": resource_type, "resource_id": resource_id}
        super().__init__(message, code="ACCESS_DENIED", details=details)


# ============================================
# Resource Not Found Errors
# ============================================

class ResourceNotFoundError(IEPMonitorError):
    """Requested resource not found"""

    http_status = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class CaseRecordNotFoundError(ResourceNotFoundError):
    def __init__(self, record_id: str):
        super().__init__("case_record", record_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("notification", notification_id)


class ReportNotFoundError(ResourceNotFoundError):
    def __init__(self, report_id: str):
        super().__init__("report", report_id)


# ============================================
# Input Errors
# ============================================

class MalformedInputError(IEPMonitorError):
    """Unparsable date, unknown goal, out-of-range value and the like"""

    http_status = 422

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {}
        if field:
            details = {"field": field, "value": value}
        super().__init__(message, code="MALFORMED_INPUT", details=details)


# ============================================
# Scan Errors
# ============================================

class ScanTimeoutError(IEPMonitorError):
    """Compliance scan exceeded its time limit"""

    http_status = 504

    def __init__(self, timeout_seconds: float, records_completed: int = 0):
        super().__init__(
            f"Compliance scan timed out after {timeout_seconds}s",
            code="SCAN_TIMEOUT",
            details={
                "timeout_seconds": timeout_seconds,
                "records_completed": records_completed,
            }
        )
