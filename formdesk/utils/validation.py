from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional
from urllib.parse import urlsplit

from formdesk.schemas import ValidationRule
from formdesk.utils.answers import deserialize_choices
from formdesk.utils.field_types import (
    FieldType,
    MAX_LENGTH,
    MIN_LENGTH,
    PATTERN,
    capabilities,
)

REQUIRED = "This field is required"
INVALID_EMAIL = "Please enter a valid email address"
INVALID_URL = "Please enter a valid URL"
INVALID_NUMBER = "Please enter a valid number"
INVALID_DATE = "Please enter a valid date"
INVALID_TIME = "Please enter a valid time"
INVALID_DATETIME = "Please enter a valid date and time"
INVALID_MONTH = "Please enter a valid month"
INVALID_WEEK = "Please enter a valid week"
INVALID_COLOR = "Please enter a valid color"
INVALID_OPTION = "Please select a valid option"
INVALID_YESNO = "Please select yes or no"
PATTERN_MISMATCH = "Please match the requested format"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_WEEK_RE = re.compile(r"^\d{4}-W(0[1-9]|[1-4]\d|5[0-3])$")
_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _fmt(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def _to_number(value: str) -> Optional[float]:
    if "_" in value:
        # float() accepts digit separators; form input does not
        return None
    try:
        num = float(value)
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def _strptime_ok(value: str, *formats: str) -> bool:
    for fmt in formats:
        try:
            datetime.strptime(value, fmt)
            return True
        except ValueError:
            continue
    return False


# ---- per-type checks: (field, value) -> error message or None ----

def _no_check(field, value: str) -> Optional[str]:
    return None


def _check_email(field, value: str) -> Optional[str]:
    return None if _EMAIL_RE.fullmatch(value) else INVALID_EMAIL


def _check_url(field, value: str) -> Optional[str]:
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return INVALID_URL
    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return INVALID_URL
    if not (parts.netloc or parts.path):
        return INVALID_URL
    return None


def _check_numeric(field, value: str) -> Optional[str]:
    num = _to_number(value)
    if num is None:
        return INVALID_NUMBER
    rule: ValidationRule | None = field.validation
    error = None
    if rule is not None:
        if rule.min is not None and num < rule.min:
            error = f"Value must be at least {_fmt(rule.min)}"
        if rule.max is not None and num > rule.max:
            error = f"Value must be at most {_fmt(rule.max)}"
    return error


def _check_date(field, value: str) -> Optional[str]:
    return None if _strptime_ok(value, "%Y-%m-%d") else INVALID_DATE


def _check_time(field, value: str) -> Optional[str]:
    return None if _strptime_ok(value, "%H:%M", "%H:%M:%S") else INVALID_TIME


def _check_datetime(field, value: str) -> Optional[str]:
    return None if _strptime_ok(value, "%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M") else INVALID_DATETIME


def _check_month(field, value: str) -> Optional[str]:
    return None if _strptime_ok(value, "%Y-%m") else INVALID_MONTH


def _check_week(field, value: str) -> Optional[str]:
    return None if _WEEK_RE.match(value) else INVALID_WEEK


def _check_color(field, value: str) -> Optional[str]:
    return None if _COLOR_RE.match(value) else INVALID_COLOR


def _check_single_choice(field, value: str) -> Optional[str]:
    options = field.options or []
    if options and value not in options:
        return INVALID_OPTION
    return None


def _check_multi_choice(field, value: str) -> Optional[str]:
    options = field.options or []
    if options and any(v not in options for v in deserialize_choices(value)):
        return INVALID_OPTION
    return None


def _check_yesno(field, value: str) -> Optional[str]:
    return None if value in ("yes", "no") else INVALID_YESNO


_TYPE_CHECKS: dict[FieldType, Callable[[object, str], Optional[str]]] = {
    FieldType.TEXT: _no_check,
    FieldType.EMAIL: _check_email,
    FieldType.NUMBER: _check_numeric,
    FieldType.TEL: _no_check,
    FieldType.URL: _check_url,
    FieldType.PASSWORD: _no_check,
    FieldType.TEXTAREA: _no_check,
    FieldType.SELECT: _check_single_choice,
    FieldType.MULTISELECT: _check_multi_choice,
    FieldType.RADIO: _check_single_choice,
    FieldType.CHECKBOX: _check_multi_choice,
    FieldType.YESNO: _check_yesno,
    FieldType.DATE: _check_date,
    FieldType.TIME: _check_time,
    FieldType.DATETIME: _check_datetime,
    FieldType.MONTH: _check_month,
    FieldType.WEEK: _check_week,
    FieldType.FILE: _no_check,
    FieldType.RATING: _check_numeric,
    FieldType.SLIDER: _check_numeric,
    FieldType.RANGE: _check_numeric,
    FieldType.COLOR: _check_color,
    FieldType.SCALE: _check_numeric,
    FieldType.MATRIX: _no_check,
}

_missing = [t.value for t in FieldType if t not in _TYPE_CHECKS]
if _missing:
    raise RuntimeError(f"no validation arm for field type(s): {', '.join(_missing)}")


def _field_error(field, value: str) -> Optional[str]:
    if field.required and not value.strip():
        return REQUIRED
    if not value.strip():
        return None

    caps = capabilities(field.field_type)
    applicable = caps.applicable_validation
    rule: ValidationRule | None = field.validation

    # later checks overwrite earlier ones
    error = _TYPE_CHECKS[FieldType(field.field_type)](field, value)
    if rule is None:
        return error

    # ValidationRule only accepts patterns that compile
    if PATTERN in applicable and rule.pattern and not re.fullmatch(rule.pattern, value):
        error = PATTERN_MISMATCH
    if MIN_LENGTH in applicable and rule.min_length and len(value) < rule.min_length:
        error = f"Must be at least {rule.min_length} characters"
    if MAX_LENGTH in applicable and rule.max_length and len(value) > rule.max_length:
        error = f"Must be at most {rule.max_length} characters"
    return error


def validate(fields: Iterable, raw_answers: Mapping[str, str]) -> dict[str, str]:
    """Validate raw string answers against a form definition.

    `fields` are FormField rows or FieldDraft objects (anything exposing
    id / field_type / required / options / validation). `raw_answers` maps
    str(field.id) to the submitted string. Returns field id -> message; the
    form is valid when the result is empty.
    """
    errors: dict[str, str] = {}
    for field in fields:
        key = str(field.id)
        value = raw_answers.get(key) or ""
        message = _field_error(field, value)
        if message:
            errors[key] = message
    return errors


def is_valid(fields: Iterable, raw_answers: Mapping[str, str]) -> bool:
    return not validate(fields, raw_answers)

