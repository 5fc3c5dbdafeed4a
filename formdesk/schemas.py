from __future__ import annotations

import re
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from formdesk.utils.field_types import FieldType


class ValidationRule(BaseModel):
    """Optional per-field rules; which ones apply depends on the field type."""

    model_config = ConfigDict(populate_by_name=True)

    min_length: Optional[int] = Field(None, alias="minLength", ge=0)
    max_length: Optional[int] = Field(None, alias="maxLength", ge=0)
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid pattern: {exc}") from exc
        return v

    def is_empty(self) -> bool:
        return all(getattr(self, k) is None for k in ("min_length", "max_length", "min", "max", "pattern"))

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class FieldDraft(BaseModel):
    """One question as held by the editor; `id` is temporary until saved."""

    id: str
    event_id: int
    field_type: FieldType
    label: str
    placeholder: Optional[str] = None
    required: bool = False
    options: Optional[List[str]] = None
    validation: Optional[ValidationRule] = None
    order_index: int = 0


class EventSettings(BaseModel):
    """Event metadata edited alongside the field list."""

    title: str
    description: Optional[str] = None
    is_active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    deadline: Optional[date] = None
    location: Optional[str] = None
    event_type: Optional[str] = None
    organizer_name: Optional[str] = None
    organizer_email: Optional[str] = None
    organizer_phone: Optional[str] = None
    max_participants: Optional[int] = Field(None, ge=1)
    banner_color: str = "#3b82f6"
