import os

# must be set before formdesk.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["REDIS_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from formdesk.core.security import SESSION_COOKIE, hash_password, sign_session
from formdesk.db.base import Base
from formdesk.db.models import Event, FormField, User
from formdesk.db.session import SessionLocal, engine
from formdesk.main import app
from formdesk.utils import editor_store
from formdesk.utils.field_types import FieldType


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    editor_store._local.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(email="owner@example.com", password="secret123", display_name="Owner"):
        u = User(email=email, display_name=display_name, password_hash=hash_password(password))
        db.add(u)
        db.commit()
        db.refresh(u)
        return u

    return _make


@pytest.fixture
def make_event(db):
    def _make(user, title="Spring Meetup", slug=None, **kw):
        e = Event(user_id=user.id, title=title, slug=slug or f"slug-{title.lower().replace(' ', '-')}", **kw)
        db.add(e)
        db.commit()
        db.refresh(e)
        return e

    return _make


@pytest.fixture
def add_field(db):
    def _add(event, field_type=FieldType.TEXT, label="Name", order_index=0, **kw):
        f = FormField(event_id=event.id, field_type=field_type, label=label, order_index=order_index, **kw)
        db.add(f)
        db.commit()
        db.refresh(f)
        return f

    return _add


@pytest.fixture
def sign_in(client):
    def _sign_in(user):
        client.cookies.set(SESSION_COOKIE, sign_session({"user_id": user.id}))
        return client

    return _sign_in
