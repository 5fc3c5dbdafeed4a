import pytest

from formdesk.utils.field_types import (
    CATEGORIES,
    MAX,
    MIN,
    MIN_LENGTH,
    PATTERN,
    DefinitionError,
    FieldType,
    capabilities,
    field_palette,
    parse_field_type,
)


def test_every_type_has_capabilities():
    for ft in FieldType:
        caps = capabilities(ft)
        assert caps.label
        assert caps.category in CATEGORIES


def test_there_are_24_field_types():
    assert len(FieldType) == 24


def test_choice_types_carry_options():
    with_options = {ft for ft in FieldType if capabilities(ft).has_options}
    assert with_options == {FieldType.SELECT, FieldType.MULTISELECT, FieldType.RADIO, FieldType.CHECKBOX}


def test_multi_value_types():
    multi = {ft for ft in FieldType if capabilities(ft).multi_value}
    assert multi == {FieldType.MULTISELECT, FieldType.CHECKBOX}


def test_numeric_rules_apply_to_numeric_types_only():
    assert MIN in capabilities(FieldType.NUMBER).applicable_validation
    assert MAX in capabilities(FieldType.RATING).applicable_validation
    assert MIN not in capabilities(FieldType.TEXT).applicable_validation
    assert MIN_LENGTH in capabilities(FieldType.DATE).applicable_validation


def test_pattern_applies_to_textual_types():
    assert PATTERN in capabilities(FieldType.TEXT).applicable_validation
    assert PATTERN in capabilities(FieldType.TEXTAREA).applicable_validation
    assert PATTERN not in capabilities(FieldType.NUMBER).applicable_validation


def test_parse_field_type():
    assert parse_field_type("email") is FieldType.EMAIL
    assert parse_field_type(" Select ") is FieldType.SELECT


def test_parse_unknown_field_type_is_a_definition_error():
    with pytest.raises(DefinitionError) as exc:
        parse_field_type("signature")
    assert "signature" in exc.value.problems[0]


def test_palette_lists_every_type_once_in_category_order():
    palette = field_palette()
    assert [c for c, _ in palette] == CATEGORIES
    listed = [ft for _, types in palette for ft, _ in types]
    assert sorted(listed) == sorted(FieldType)
