"""Custom SQLAlchemy types and time helpers"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import TypeDecorator, String
import uuid


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC now, matching the naive DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_calendar_date(value: Optional[str]) -> datetime:
    """
    Parse an ISO date or datetime string into a naive UTC datetime.

    Date-only values mean midnight UTC. Raises ValueError for anything
    that is not ISO formatted.
    """
    if value is None or not str(value).strip():
        raise ValueError("empty date")
    parsed = datetime.fromisoformat(str(value).strip())
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value
