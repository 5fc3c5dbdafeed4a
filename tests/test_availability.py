from datetime import date, datetime
from types import SimpleNamespace

from formdesk.utils.availability import deadline_passed, is_accepting


def _event(deadline=None, is_active=True):
    return SimpleNamespace(deadline=deadline, is_active=is_active)


def test_no_deadline_never_passes():
    assert not deadline_passed(_event(), now=datetime(2099, 1, 1))


def test_deadline_day_stays_open_until_midnight():
    e = _event(deadline=date(2026, 10, 19))
    assert not deadline_passed(e, now=datetime(2026, 10, 19, 0, 0))
    assert not deadline_passed(e, now=datetime(2026, 10, 19, 23, 59, 59))
    assert deadline_passed(e, now=datetime(2026, 10, 20, 0, 0))


def test_inactive_event_is_not_accepting():
    assert not is_accepting(_event(is_active=False), now=datetime(2026, 1, 1))
    assert is_accepting(_event(deadline=date(2026, 1, 2)), now=datetime(2026, 1, 1))
    assert not is_accepting(_event(deadline=date(2026, 1, 2)), now=datetime(2026, 1, 3))


def test_deadline_gate_boundary_regardless_of_active_flag():
    for active in (True, False):
        e = _event(deadline=date(2026, 5, 1), is_active=active)
        assert not deadline_passed(e, now=datetime(2026, 5, 1, 23, 59, 59, 999000))
        assert deadline_passed(e, now=datetime(2026, 5, 2, 0, 0, 0))
