from formdesk.schemas import FieldDraft, ValidationRule
from formdesk.utils.field_types import FieldType
from formdesk.utils.validation import (
    INVALID_EMAIL,
    INVALID_NUMBER,
    INVALID_OPTION,
    INVALID_URL,
    INVALID_YESNO,
    PATTERN_MISMATCH,
    REQUIRED,
    is_valid,
    validate,
)


def _field(field_type, id="1", required=False, options=None, validation=None):
    return FieldDraft(
        id=id,
        event_id=1,
        field_type=field_type,
        label="Q",
        required=required,
        options=options,
        validation=validation,
    )


def test_required_empty_and_whitespace():
    f = _field(FieldType.TEXT, required=True)
    assert validate([f], {}) == {"1": REQUIRED}
    assert validate([f], {"1": "   "}) == {"1": REQUIRED}
    assert validate([f], {"1": "x"}) == {}


def test_optional_empty_is_always_valid():
    fields = [
        _field(FieldType.EMAIL, id="1"),
        _field(FieldType.NUMBER, id="2", validation=ValidationRule(min=5)),
        _field(FieldType.TEXT, id="3", validation=ValidationRule(minLength=3, pattern="[a-z]+")),
    ]
    assert is_valid(fields, {"1": "", "2": "", "3": ""})


def test_email():
    f = _field(FieldType.EMAIL)
    assert validate([f], {"1": "a@b.co"}) == {}
    assert validate([f], {"1": "not-an-email"}) == {"1": INVALID_EMAIL}
    assert validate([f], {"1": "a b@c.d"}) == {"1": INVALID_EMAIL}
    assert validate([f], {"1": "a@b.co\n"}) == {"1": INVALID_EMAIL}


def test_number_bounds():
    f = _field(FieldType.NUMBER, validation=ValidationRule(min=5, max=10))
    assert validate([f], {"1": "abc"}) == {"1": INVALID_NUMBER}
    assert validate([f], {"1": "3"}) == {"1": "Value must be at least 5"}
    assert validate([f], {"1": "11"}) == {"1": "Value must be at most 10"}
    assert validate([f], {"1": "7.5"}) == {}
    assert validate([f], {"1": "1_000"}) == {"1": INVALID_NUMBER}


def test_length_rules_override_earlier_errors():
    f = _field(FieldType.TEXT, validation=ValidationRule(minLength=3, maxLength=5))
    assert validate([f], {"1": "ab"}) == {"1": "Must be at least 3 characters"}
    assert validate([f], {"1": "abcdef"}) == {"1": "Must be at most 5 characters"}
    assert validate([f], {"1": "abcd"}) == {}


def test_pattern_must_match_whole_value():
    f = _field(FieldType.TEXT, validation=ValidationRule(pattern="[0-9]{3}"))
    assert validate([f], {"1": "123"}) == {}
    assert validate([f], {"1": "1234"}) == {"1": PATTERN_MISMATCH}


def test_url():
    f = _field(FieldType.URL)
    assert validate([f], {"1": "https://example.com/x"}) == {}
    assert validate([f], {"1": "example dot com"}) == {"1": INVALID_URL}


def test_choices_must_be_listed_options():
    single = _field(FieldType.RADIO, id="1", options=["Red", "Blue"])
    multi = _field(FieldType.CHECKBOX, id="2", options=["A", "B", "C"])
    assert validate([single, multi], {"1": "Blue", "2": "A,C"}) == {}
    assert validate([single, multi], {"1": "Green", "2": "A,Z"}) == {"1": INVALID_OPTION, "2": INVALID_OPTION}


def test_yesno():
    f = _field(FieldType.YESNO)
    assert validate([f], {"1": "yes"}) == {}
    assert validate([f], {"1": "maybe"}) == {"1": INVALID_YESNO}


def test_errors_keyed_per_field():
    fields = [_field(FieldType.TEXT, id="1", required=True), _field(FieldType.TEXT, id="2")]
    assert validate(fields, {"2": "fine"}) == {"1": REQUIRED}


def test_required_email_reports_only_required():
    f = _field(FieldType.EMAIL, required=True, validation=ValidationRule(minLength=5))
    assert validate([f], {"1": ""}) == {"1": "This field is required"}


def test_optional_email_examples():
    f = _field(FieldType.EMAIL)
    assert validate([f], {"1": "not-an-email"}) == {"1": "Please enter a valid email address"}
    assert validate([f], {"1": ""}) == {}


def test_number_examples():
    f = _field(FieldType.NUMBER, validation=ValidationRule(min=1, max=5))
    assert validate([f], {"1": "10"}) == {"1": "Value must be at most 5"}
    assert validate([f], {"1": "3"}) == {}
