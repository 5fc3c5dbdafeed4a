from __future__ import annotations

from typing import Iterable

from formdesk.utils.field_types import capabilities

CHOICE_SEPARATOR = ","


def serialize_choices(selected: Iterable[str]) -> str:
    """Encode the selected options of a multi-value field into one answer string."""
    return CHOICE_SEPARATOR.join(s for s in selected if s != "")


def deserialize_choices(answer: str | None) -> list[str]:
    if not answer:
        return []
    return answer.split(CHOICE_SEPARATOR)


def field_input_name(field) -> str:
    return f"field_{field.id}"


def collect_raw_answers(fields: Iterable, form_data) -> dict[str, str]:
    """Turn a submitted multi-dict (starlette FormData) into field id -> raw string.

    Multi-value fields arrive as repeated keys and are comma-joined in the
    order the browser sent them.
    """
    raw: dict[str, str] = {}
    for field in fields:
        name = field_input_name(field)
        if capabilities(field.field_type).multi_value:
            raw[str(field.id)] = serialize_choices(str(v) for v in form_data.getlist(name))
        else:
            v = form_data.get(name)
            # file inputs: only the file name is recorded
            v = getattr(v, "filename", v)
            raw[str(field.id)] = "" if v is None else str(v)
    return raw


def answers_by_field(submission) -> dict[int, str]:
    return {a.field_id: a.answer for a in submission.answers}
