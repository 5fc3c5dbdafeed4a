import time

from formdesk.core.config import settings
from formdesk.core.security import SESSION_COOKIE
from formdesk.core.session_guard import MARKER_COOKIE, GuardAction, evaluate

CAP_MS = 5 * 60 * 60 * 1000
NOW = 1_800_000_000_000


def test_authenticated_without_marker_starts_clock():
    assert evaluate(True, None, NOW, CAP_MS) is GuardAction.START


def test_within_cap_proceeds():
    assert evaluate(True, str(NOW - CAP_MS), NOW, CAP_MS) is GuardAction.PROCEED


def test_past_cap_expires():
    assert evaluate(True, str(NOW - CAP_MS - 1), NOW, CAP_MS) is GuardAction.EXPIRE


def test_unreadable_marker_is_left_alone():
    assert evaluate(True, "yesterday", NOW, CAP_MS) is GuardAction.PROCEED


def test_stale_marker_without_session_is_cleared():
    assert evaluate(False, str(NOW), NOW, CAP_MS) is GuardAction.CLEAR_STALE
    assert evaluate(False, None, NOW, CAP_MS) is GuardAction.PROCEED


def test_middleware_sets_marker_on_first_authenticated_request(client, make_user, sign_in):
    sign_in(make_user())
    resp = client.get("/dashboard", follow_redirects=False)
    assert resp.status_code == 200
    marker = resp.cookies.get(MARKER_COOKIE)
    assert marker is not None
    assert abs(int(marker) - int(time.time() * 1000)) < 60_000


def test_middleware_signs_out_expired_session(client, make_user, sign_in):
    sign_in(make_user())
    old = int(time.time() * 1000) - settings.SESSION_LIFETIME_CAP_SECONDS * 1000 - 1000
    client.cookies.set(MARKER_COOKIE, str(old))

    resp = client.get("/dashboard", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/auth/signin"
    set_cookie = " ".join(resp.headers.get_list("set-cookie"))
    assert f"{SESSION_COOKIE}=" in set_cookie
    assert f"{MARKER_COOKIE}=" in set_cookie


def test_middleware_clears_marker_when_signed_out(client):
    client.cookies.set(MARKER_COOKIE, str(int(time.time() * 1000)))
    resp = client.get("/", follow_redirects=False)
    assert resp.status_code == 200
    assert f"{MARKER_COOKIE}=" in " ".join(resp.headers.get_list("set-cookie"))


def test_middleware_leaves_fresh_session_untouched(client, make_user, sign_in):
    sign_in(make_user())
    client.cookies.set(MARKER_COOKIE, str(int(time.time() * 1000) - 60_000))
    resp = client.get("/dashboard", follow_redirects=False)
    assert resp.status_code == 200
    assert MARKER_COOKIE not in " ".join(resp.headers.get_list("set-cookie"))
