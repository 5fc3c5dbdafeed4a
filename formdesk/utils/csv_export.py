from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable

from formdesk.utils.answers import answers_by_field

HEADER_PREFIX = ["Submission ID", "Submitted At"]


def _quote(value: str) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def _quote_if_needed(value: str) -> str:
    value = value or ""
    if any(ch in value for ch in (",", '"', "\n", "\r")):
        return _quote(value)
    return value


def format_timestamp(ts: datetime | None) -> str:
    """en-US style in UTC, e.g. `10/19/2026, 3:04:05 PM`.

    Submissions are stored in UTC; naive values coming back from the
    database are taken as UTC and aware ones are converted.
    """
    if ts is None:
        return ""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    hour = ts.hour % 12 or 12
    suffix = "AM" if ts.hour < 12 else "PM"
    return f"{ts.month}/{ts.day}/{ts.year}, {hour}:{ts.minute:02d}:{ts.second:02d} {suffix}"


def to_csv(event, fields: Iterable, submissions: Iterable) -> str:
    """Flatten submissions into CSV text.

    Columns follow the *current* field list (matched by field id), so answers
    to fields deleted since a submission was collected are not exported and
    fields added later show up empty. Answer cells are always quoted with
    embedded quotes doubled; rows are joined by newlines with no trailing one.
    """
    fields = list(fields)
    header = HEADER_PREFIX + [f.label for f in fields]
    rows = [",".join(_quote_if_needed(h) for h in header)]

    for s in submissions:
        by_field = answers_by_field(s)
        row = [str(s.id), _quote_if_needed(format_timestamp(s.submitted_at))]
        row.extend(_quote(by_field.get(f.id, "")) for f in fields)
        rows.append(",".join(row))

    return "\n".join(rows)


def export_filename(event, today: date | None = None) -> str:
    today = today or date.today()
    return f"{event.slug}-responses-{today.isoformat()}.csv"
