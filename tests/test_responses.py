import csv
import io
from datetime import date

from formdesk.db.models import FormSubmission, SubmissionAnswer
from formdesk.utils.field_types import FieldType


def _collected(client, db, make_user, make_event, add_field, sign_in):
    owner = make_user()
    event = make_event(owner, slug="resp-slug")
    name = add_field(event, FieldType.TEXT, label="Name", order_index=0)
    note = add_field(event, FieldType.TEXTAREA, label="Note", order_index=1)
    for who, text in (("Ada", "likes, commas"), ("Bob", 'says "hi"')):
        client.post("/f/resp-slug", data={f"field_{name.id}": who, f"field_{note.id}": text})
    sign_in(owner)
    return owner, event, name, note


def test_list_and_search(client, db, make_user, make_event, add_field, sign_in):
    _, event, _, _ = _collected(client, db, make_user, make_event, add_field, sign_in)
    resp = client.get(f"/dashboard/events/{event.id}/responses")
    assert resp.status_code == 200
    assert "Ada" in resp.text and "Bob" in resp.text

    resp = client.get(f"/dashboard/events/{event.id}/responses", params={"q": "ADA"})
    assert "Ada" in resp.text
    assert "Bob" not in resp.text


def test_export_csv(client, db, make_user, make_event, add_field, sign_in):
    _, event, _, _ = _collected(client, db, make_user, make_event, add_field, sign_in)
    resp = client.get(f"/dashboard/events/{event.id}/responses/export.csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    expected = f"resp-slug-responses-{date.today().isoformat()}.csv"
    assert expected in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == ["Submission ID", "Submitted At", "Name", "Note"]
    # newest first
    assert [r[2:] for r in rows[1:]] == [["Bob", 'says "hi"'], ["Ada", "likes, commas"]]


def test_detail_edit_and_delete(client, db, make_user, make_event, add_field, sign_in):
    _, event, name, note = _collected(client, db, make_user, make_event, add_field, sign_in)
    sub = db.query(FormSubmission).order_by(FormSubmission.id).first()
    base = f"/dashboard/events/{event.id}/responses/{sub.id}"

    assert "likes, commas" in client.get(base).text

    resp = client.post(f"{base}/edit", data={f"field_{name.id}": "Ada L.", f"field_{note.id}": ""},
                       follow_redirects=False)
    assert resp.status_code == 303
    db.expire_all()
    answers = {a.field_id: a.answer for a in db.query(SubmissionAnswer).filter_by(submission_id=sub.id)}
    assert answers == {name.id: "Ada L.", note.id: ""}

    resp = client.post(f"{base}/delete", follow_redirects=False)
    assert resp.status_code == 303
    db.expire_all()
    assert db.query(FormSubmission).filter_by(id=sub.id).count() == 0
    assert db.query(SubmissionAnswer).filter_by(submission_id=sub.id).count() == 0
    assert db.query(FormSubmission).count() == 1


def test_response_of_another_event_is_not_found(client, db, make_user, make_event, add_field, sign_in):
    owner, event, _, _ = _collected(client, db, make_user, make_event, add_field, sign_in)
    other = make_event(owner, title="Other", slug="other-slug")
    sub = db.query(FormSubmission).first()
    assert client.get(f"/dashboard/events/{other.id}/responses/{sub.id}").status_code == 404


def test_non_owner_cannot_export(client, db, make_user, make_event, add_field, sign_in):
    _, event, _, _ = _collected(client, db, make_user, make_event, add_field, sign_in)
    sign_in(make_user(email="someone@example.com"))
    assert client.get(f"/dashboard/events/{event.id}/responses/export.csv").status_code == 404
