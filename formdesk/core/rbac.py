from __future__ import annotations

from fastapi import HTTPException

from formdesk.db.models.event import Event
from formdesk.db.models.user import User


def require(condition: bool, msg: str = "Not found", status_code: int = 404) -> None:
    """Small helper used across routers.

    Defaults to 404 so that a resource the caller does not own looks exactly
    like a resource that does not exist. For validation errors pass
    `status_code=400`.
    """
    if not condition:
        raise HTTPException(status_code=status_code, detail=msg)


def owns_event(user: User, event: Event | None) -> bool:
    return event is not None and event.user_id == user.id


def require_owned_event(user: User, event: Event | None) -> Event:
    require(owns_event(user, event), "Event not found", 404)
    return event
