import json
from datetime import date, timedelta

from formdesk.db.models import FormSubmission, SubmissionAnswer
from formdesk.utils.field_types import FieldType


def _form(make_user, make_event, add_field, **event_kw):
    owner = make_user()
    event = make_event(owner, slug="public-slug", **event_kw)
    name = add_field(event, FieldType.TEXT, label="Full name", required=True, order_index=0)
    email = add_field(event, FieldType.EMAIL, label="Email", order_index=1)
    diet = add_field(
        event, FieldType.CHECKBOX, label="Diet", order_index=2, options_json=json.dumps(["Vegan", "Halal", "None"])
    )
    return event, name, email, diet


def test_form_renders_fields(client, make_user, make_event, add_field):
    _form(make_user, make_event, add_field)
    resp = client.get("/f/public-slug")
    assert resp.status_code == 200
    assert "Full name" in resp.text
    assert 'enctype="multipart/form-data"' in resp.text


def test_missing_or_inactive_form_is_not_found(client, make_user, make_event, add_field):
    _form(make_user, make_event, add_field, is_active=False)
    assert client.get("/f/public-slug").status_code == 404
    assert client.get("/f/does-not-exist").status_code == 404


def test_closed_after_deadline(client, db, make_user, make_event, add_field):
    _form(make_user, make_event, add_field, deadline=date.today() - timedelta(days=1))
    resp = client.get("/f/public-slug")
    assert resp.status_code == 200
    assert "closed" in resp.text

    resp = client.post("/f/public-slug", data={"field_1": "Ada"})
    assert "closed" in resp.text
    assert db.query(FormSubmission).count() == 0


def test_open_on_deadline_day(client, make_user, make_event, add_field):
    _form(make_user, make_event, add_field, deadline=date.today())
    resp = client.get("/f/public-slug")
    assert "Full name" in resp.text


def test_invalid_submission_shows_inline_errors(client, db, make_user, make_event, add_field):
    _, name, email, _ = _form(make_user, make_event, add_field)
    resp = client.post("/f/public-slug", data={f"field_{email.id}": "not-an-email"})
    assert resp.status_code == 400
    assert "This field is required" in resp.text
    assert "Please enter a valid email address" in resp.text
    # entered values are kept
    assert "not-an-email" in resp.text
    assert db.query(FormSubmission).count() == 0


def test_valid_submission_stores_one_answer_per_field(client, db, make_user, make_event, add_field):
    event, name, email, diet = _form(make_user, make_event, add_field)
    resp = client.post(
        "/f/public-slug",
        data={f"field_{name.id}": "Ada", f"field_{diet.id}": ["Vegan", "Halal"]},
        headers={"user-agent": "pytest-browser"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/f/public-slug/success"

    submission = db.query(FormSubmission).one()
    assert submission.event_id == event.id
    assert submission.user_agent == "pytest-browser"
    answers = {a.field_id: a.answer for a in db.query(SubmissionAnswer).all()}
    assert answers == {name.id: "Ada", email.id: "", diet.id: "Vegan,Halal"}

    assert "Thank you" in client.get("/f/public-slug/success").text


def test_option_outside_list_is_rejected(client, db, make_user, make_event, add_field):
    _, name, _, diet = _form(make_user, make_event, add_field)
    resp = client.post("/f/public-slug", data={f"field_{name.id}": "Ada", f"field_{diet.id}": ["Paleo"]})
    assert resp.status_code == 400
    assert "Please select a valid option" in resp.text


def test_file_field_records_file_name(client, db, make_user, make_event, add_field):
    event = make_event(make_user(), slug="upload-slug")
    cv = add_field(event, FieldType.FILE, label="CV")
    resp = client.post(
        "/f/upload-slug",
        files={f"field_{cv.id}": ("resume.pdf", b"%PDF-1.4", "application/pdf")},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert db.query(SubmissionAnswer).one().answer == "resume.pdf"
