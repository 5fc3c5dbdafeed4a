from types import SimpleNamespace

from starlette.datastructures import FormData

from formdesk.utils.answers import (
    collect_raw_answers,
    deserialize_choices,
    field_input_name,
    serialize_choices,
)
from formdesk.utils.field_types import FieldType


def _field(id, field_type):
    return SimpleNamespace(id=id, field_type=field_type)


def test_choices_round_trip_without_commas():
    selected = ["Vegan", "Gluten free", "None"]
    assert deserialize_choices(serialize_choices(selected)) == selected


def test_empty_answer_has_no_choices():
    assert deserialize_choices("") == []
    assert deserialize_choices(None) == []


def test_collect_raw_answers():
    diet = _field(1, FieldType.CHECKBOX)
    name = _field(2, FieldType.TEXT)
    skipped = _field(3, FieldType.TEXT)
    form = FormData(
        [
            (field_input_name(diet), "Vegan"),
            (field_input_name(diet), "Halal"),
            (field_input_name(name), "Ada"),
        ]
    )
    raw = collect_raw_answers([diet, name, skipped], form)
    assert raw == {"1": "Vegan,Halal", "2": "Ada", "3": ""}


def test_checkbox_selection_order_is_preserved():
    assert deserialize_choices(serialize_choices(["A", "C"])) == ["A", "C"]
