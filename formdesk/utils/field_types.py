"""Field type registry.

Every question in a form carries one of a fixed set of type tags. The tag
decides which affordance the public form renders, whether the field carries
a list of options, and which validation rules make sense for it.

The registry below must describe every member of ``FieldType``; the module
refuses to import otherwise so that a new tag cannot ship without its
capabilities (and, in ``validation.py``, without its validation arm).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass


class DefinitionError(ValueError):
    """A form definition that cannot be saved (unknown type, empty label, ...)."""

    def __init__(self, problems: list[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class FieldType(str, enum.Enum):
    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    TEL = "tel"
    URL = "url"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    YESNO = "yesno"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    MONTH = "month"
    WEEK = "week"
    FILE = "file"
    RATING = "rating"
    SLIDER = "slider"
    RANGE = "range"
    COLOR = "color"
    SCALE = "scale"
    MATRIX = "matrix"


# Rule names as they appear in a field's validation object.
MIN_LENGTH = "minLength"
MAX_LENGTH = "maxLength"
MIN = "min"
MAX = "max"
PATTERN = "pattern"

CATEGORIES = ["Basic", "Text", "Choice", "Date & Time", "Advanced"]


@dataclass(frozen=True)
class FieldCapabilities:
    label: str
    category: str
    has_options: bool = False
    multi_value: bool = False
    applicable_validation: frozenset[str] = frozenset()


_LENGTH = frozenset({MIN_LENGTH, MAX_LENGTH})
_TEXTUAL = _LENGTH | {PATTERN}
_NUMERIC = _LENGTH | {MIN, MAX}


_REGISTRY: dict[FieldType, FieldCapabilities] = {
    FieldType.TEXT: FieldCapabilities("Text", "Basic", applicable_validation=_TEXTUAL),
    FieldType.EMAIL: FieldCapabilities("Email", "Basic", applicable_validation=_TEXTUAL),
    FieldType.NUMBER: FieldCapabilities("Number", "Basic", applicable_validation=_NUMERIC),
    FieldType.TEL: FieldCapabilities("Phone", "Basic", applicable_validation=_TEXTUAL),
    FieldType.URL: FieldCapabilities("URL", "Basic", applicable_validation=_TEXTUAL),
    FieldType.PASSWORD: FieldCapabilities("Password", "Basic", applicable_validation=_TEXTUAL),
    FieldType.TEXTAREA: FieldCapabilities("Text Area", "Text", applicable_validation=_TEXTUAL),
    FieldType.SELECT: FieldCapabilities("Dropdown", "Choice", has_options=True, applicable_validation=_LENGTH),
    FieldType.MULTISELECT: FieldCapabilities(
        "Multi Select", "Choice", has_options=True, multi_value=True, applicable_validation=_LENGTH
    ),
    FieldType.RADIO: FieldCapabilities("Radio", "Choice", has_options=True, applicable_validation=_LENGTH),
    FieldType.CHECKBOX: FieldCapabilities(
        "Checkbox", "Choice", has_options=True, multi_value=True, applicable_validation=_LENGTH
    ),
    FieldType.YESNO: FieldCapabilities("Yes/No", "Choice", applicable_validation=_LENGTH),
    FieldType.DATE: FieldCapabilities("Date", "Date & Time", applicable_validation=_LENGTH),
    FieldType.TIME: FieldCapabilities("Time", "Date & Time", applicable_validation=_LENGTH),
    FieldType.DATETIME: FieldCapabilities("Date & Time", "Date & Time", applicable_validation=_LENGTH),
    FieldType.MONTH: FieldCapabilities("Month", "Date & Time", applicable_validation=_LENGTH),
    FieldType.WEEK: FieldCapabilities("Week", "Date & Time", applicable_validation=_LENGTH),
    FieldType.FILE: FieldCapabilities("File Upload", "Advanced", applicable_validation=_LENGTH),
    FieldType.RATING: FieldCapabilities("Rating", "Advanced", applicable_validation=_NUMERIC),
    FieldType.SLIDER: FieldCapabilities("Slider", "Advanced", applicable_validation=_NUMERIC),
    FieldType.RANGE: FieldCapabilities("Range", "Advanced", applicable_validation=_NUMERIC),
    FieldType.COLOR: FieldCapabilities("Color Picker", "Advanced", applicable_validation=_LENGTH),
    FieldType.SCALE: FieldCapabilities("Scale (1-10)", "Advanced", applicable_validation=_NUMERIC),
    FieldType.MATRIX: FieldCapabilities("Matrix", "Advanced", applicable_validation=_LENGTH),
}

_missing = [t.value for t in FieldType if t not in _REGISTRY]
if _missing:
    raise RuntimeError(f"field type registry is missing: {', '.join(_missing)}")


def capabilities(field_type: FieldType) -> FieldCapabilities:
    return _REGISTRY[FieldType(field_type)]


def parse_field_type(tag: str) -> FieldType:
    try:
        return FieldType((tag or "").strip().lower())
    except ValueError:
        raise DefinitionError(f"Unknown field type: {tag!r}") from None


def field_palette() -> list[tuple[str, list[tuple[FieldType, FieldCapabilities]]]]:
    """Field types grouped by category, in palette order (for the 'add field' menu)."""
    return [
        (category, [(t, c) for t, c in _REGISTRY.items() if c.category == category])
        for category in CATEGORIES
    ]
