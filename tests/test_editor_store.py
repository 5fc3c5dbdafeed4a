from formdesk.utils import editor_store
from formdesk.utils.field_types import FieldType


def test_open_session_loads_persisted_fields(db, make_user, make_event, add_field):
    user = make_user()
    event = make_event(user)
    add_field(event, FieldType.EMAIL, label="Email", order_index=1)
    add_field(event, FieldType.TEXT, label="Name", order_index=0)

    editor = editor_store.open_session(user.id, event)
    assert [f.label for f in editor.fields] == ["Name", "Email"]
    assert editor.settings.title == "Spring Meetup"


def test_draft_survives_between_requests_until_disposed(db, make_user, make_event):
    user = make_user()
    event = make_event(user)

    editor = editor_store.open_session(user.id, event)
    editor.add_field(FieldType.RATING)
    editor_store.put(user.id, editor)

    again = editor_store.open_session(user.id, event)
    assert [f.field_type for f in again.fields] == [FieldType.RATING]

    editor_store.dispose(user.id, event.id)
    assert editor_store.get(user.id, event.id) is None


def test_drafts_are_per_user(db, make_user, make_event):
    owner = make_user()
    event = make_event(owner)
    editor = editor_store.open_session(owner.id, event)
    editor.add_field(FieldType.TEXT)
    editor_store.put(owner.id, editor)

    assert editor_store.get(owner.id + 1, event.id) is None


def test_unreadable_draft_is_discarded(db, make_user, make_event):
    user = make_user()
    event = make_event(user)
    key = f"editor:{user.id}:{event.id}"
    editor_store._local[key] = (float("inf"), "{not json")

    assert editor_store.get(user.id, event.id) is None
    assert key not in editor_store._local


def test_expired_local_drafts_are_pruned_on_write(db, make_user, make_event):
    user = make_user()
    event = make_event(user)
    abandoned = "editor:999:999"
    editor_store._local[abandoned] = (0.0, "{}")

    editor_store.open_session(user.id, event)

    assert abandoned not in editor_store._local
    assert f"editor:{user.id}:{event.id}" in editor_store._local
