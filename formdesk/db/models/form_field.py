from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from formdesk.db.base import Base
from formdesk.schemas import ValidationRule
from formdesk.utils.field_types import FieldType


class FormField(Base):
    __tablename__ = "form_fields"
    # ids must never be reused: answers keep pointing at the ids of replaced fields
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), index=True)

    field_type: Mapped[FieldType] = mapped_column(Enum(FieldType), index=True)
    label: Mapped[str] = mapped_column(String(255))
    placeholder: Mapped[str | None] = mapped_column(String(255), nullable=True)
    required: Mapped[bool] = mapped_column(Boolean, default=False)

    # JSON list of strings (choice types only) / JSON object of rules
    options_json: Mapped[str] = mapped_column(Text, default="")
    validation_json: Mapped[str] = mapped_column(Text, default="")

    order_index: Mapped[int] = mapped_column(Integer, default=0, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    @property
    def options(self) -> list[str] | None:
        if not self.options_json:
            return None
        try:
            v = json.loads(self.options_json)
        except ValueError:
            return None
        return [str(x) for x in v] if isinstance(v, list) else None

    @property
    def validation(self) -> ValidationRule | None:
        if not self.validation_json:
            return None
        try:
            return ValidationRule.model_validate(json.loads(self.validation_json))
        except ValueError:
            return None
