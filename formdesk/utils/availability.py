from __future__ import annotations

from datetime import datetime, time


def deadline_passed(event, now: datetime | None = None) -> bool:
    """The deadline date stays open until the very end of that day."""
    if event.deadline is None:
        return False
    now = now or datetime.now()
    end_of_day = datetime.combine(event.deadline, time.max)
    return now > end_of_day


def is_accepting(event, now: datetime | None = None) -> bool:
    return bool(event.is_active) and not deadline_passed(event, now)
