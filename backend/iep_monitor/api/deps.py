"""
Actor resolution

Authentication happens upstream; the session provider forwards the resolved
user id in settings.ACTOR_HEADER. These dependencies only read it.
"""

from typing import Optional
from fastapi import Request

from iep_monitor.core.config import settings
from iep_monitor.core.exceptions import UnauthenticatedError
from iep_monitor.core.logging_config import set_user_id


def get_optional_actor(request: Request) -> Optional[str]:
    actor_id = (request.headers.get(settings.ACTOR_HEADER) or "").strip()
    if not actor_id:
        return None
    set_user_id(actor_id)
    return actor_id


def get_current_actor(request: Request) -> str:
    actor_id = get_optional_actor(request)
    if actor_id is None:
        raise UnauthenticatedError()
    return actor_id
