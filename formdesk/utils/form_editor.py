from __future__ import annotations

import json
from typing import Any

from formdesk.schemas import EventSettings, FieldDraft, ValidationRule
from formdesk.utils.answers import CHOICE_SEPARATOR
from formdesk.utils.field_types import DefinitionError, FieldType, capabilities

TEMP_ID_PREFIX = "temp-"


class FormEditor:
    """Editing session for one event's form definition.

    Holds the event settings draft, the ordered field list and the current
    selection. Nothing here touches the database; persistence happens in
    `form_store.save_form_definition`, which takes the editor as input.
    """

    def __init__(self, event_id: int, settings: EventSettings, fields: list[FieldDraft] | None = None,
                 selected_id: str | None = None, next_temp: int = 1):
        self.event_id = event_id
        self.settings = settings
        self.fields: list[FieldDraft] = list(fields or [])
        self.selected_id = selected_id
        self._next_temp = next_temp

    # ---- construction / (de)serialization ----

    @classmethod
    def from_event(cls, event) -> "FormEditor":
        """Open a session from a persisted event and its field rows."""
        settings = EventSettings(
            title=event.title,
            description=event.description,
            is_active=bool(event.is_active),
            start_date=event.start_date,
            end_date=event.end_date,
            deadline=event.deadline,
            location=event.location,
            event_type=event.event_type,
            organizer_name=event.organizer_name,
            organizer_email=event.organizer_email,
            organizer_phone=event.organizer_phone,
            max_participants=event.max_participants,
            banner_color=event.banner_color or "#3b82f6",
        )
        drafts = [
            FieldDraft(
                id=str(f.id),
                event_id=event.id,
                field_type=f.field_type,
                label=f.label,
                placeholder=f.placeholder,
                required=bool(f.required),
                options=f.options,
                validation=f.validation,
                order_index=f.order_index,
            )
            for f in sorted(event.fields, key=lambda x: x.order_index)
        ]
        return cls(event.id, settings, drafts)

    def dumps(self) -> str:
        return json.dumps(
            {
                "event_id": self.event_id,
                "settings": self.settings.model_dump(mode="json"),
                "fields": [f.model_dump(mode="json", by_alias=True) for f in self.fields],
                "selected_id": self.selected_id,
                "next_temp": self._next_temp,
            }
        )

    @classmethod
    def loads(cls, raw: str) -> "FormEditor":
        d = json.loads(raw)
        return cls(
            int(d["event_id"]),
            EventSettings.model_validate(d["settings"]),
            [FieldDraft.model_validate(f) for f in d.get("fields") or []],
            selected_id=d.get("selected_id"),
            next_temp=int(d.get("next_temp") or 1),
        )

    # ---- lookups ----

    def get_field(self, field_id: str) -> FieldDraft:
        for f in self.fields:
            if f.id == field_id:
                return f
        raise KeyError(field_id)

    @property
    def selected(self) -> FieldDraft | None:
        if self.selected_id is None:
            return None
        try:
            return self.get_field(self.selected_id)
        except KeyError:
            return None

    def select(self, field_id: str | None) -> None:
        if field_id is not None:
            self.get_field(field_id)
        self.selected_id = field_id

    # ---- operations ----

    def _new_temp_id(self) -> str:
        n = self._next_temp
        self._next_temp = n + 1
        return f"{TEMP_ID_PREFIX}{n}"

    def add_field(self, field_type: FieldType) -> FieldDraft:
        field_type = FieldType(field_type)
        field = FieldDraft(
            id=self._new_temp_id(),
            event_id=self.event_id,
            field_type=field_type,
            label=f"New {field_type.value} field",
            placeholder="",
            required=False,
            options=["Option 1"] if capabilities(field_type).has_options else None,
            validation=None,
            order_index=len(self.fields),
        )
        self.fields.append(field)
        self.selected_id = field.id
        return field

    def update_field(self, field: FieldDraft) -> None:
        for i, f in enumerate(self.fields):
            if f.id == field.id:
                self.fields[i] = field
                self.selected_id = field.id
                return
        raise KeyError(field.id)

    def delete_field(self, field_id: str) -> None:
        # Remaining order_index values are left as they are until the next reorder.
        before = len(self.fields)
        self.fields = [f for f in self.fields if f.id != field_id]
        if len(self.fields) == before:
            raise KeyError(field_id)
        if self.selected_id == field_id:
            self.selected_id = None

    def reorder_fields(self, from_index: int, to_index: int) -> None:
        if not (0 <= from_index < len(self.fields)) or not (0 <= to_index < len(self.fields)):
            raise IndexError("field index out of range")
        result = list(self.fields)
        moved = result.pop(from_index)
        result.insert(to_index, moved)
        self.fields = [f.model_copy(update={"order_index": i}) for i, f in enumerate(result)]

    def update_settings(self, settings: EventSettings) -> None:
        self.settings = settings

    # ---- save preparation ----

    def check_definition(self) -> None:
        """Raise DefinitionError listing everything that blocks a save."""
        problems: list[str] = []
        if not (self.settings.title or "").strip():
            problems.append("Event title is required.")
        for pos, f in enumerate(self.fields, start=1):
            name = (f.label or "").strip() or f"Field #{pos}"
            if not (f.label or "").strip():
                problems.append(f"{name}: label is required.")
            caps = capabilities(f.field_type)
            if caps.has_options:
                opts = [o for o in (f.options or []) if o.strip()]
                if not opts:
                    problems.append(f"{name}: at least one option is required.")
                if caps.multi_value and any(CHOICE_SEPARATOR in o for o in opts):
                    # selections are stored comma-joined
                    problems.append(f"{name}: options cannot contain a comma.")
            rule = f.validation
            if rule is not None:
                if rule.min is not None and rule.max is not None and rule.min > rule.max:
                    problems.append(f"{name}: minimum is greater than maximum.")
                if (
                    rule.min_length is not None
                    and rule.max_length is not None
                    and rule.min_length > rule.max_length
                ):
                    problems.append(f"{name}: minimum length is greater than maximum length.")
        if problems:
            raise DefinitionError(problems)

    def to_payload(self) -> list[dict[str, Any]]:
        """Insert-ready rows; temporary/client ids are dropped."""
        rows = []
        for f in self.fields:
            has_options = capabilities(f.field_type).has_options
            rule: ValidationRule | None = f.validation
            rows.append(
                {
                    "event_id": self.event_id,
                    "field_type": f.field_type,
                    "label": f.label.strip(),
                    "placeholder": f.placeholder or None,
                    "required": bool(f.required),
                    "options_json": json.dumps(f.options, ensure_ascii=False) if has_options and f.options else "",
                    "validation_json": (
                        json.dumps(rule.dump(), ensure_ascii=False) if rule is not None and not rule.is_empty() else ""
                    ),
                    "order_index": f.order_index,
                }
            )
        return rows
