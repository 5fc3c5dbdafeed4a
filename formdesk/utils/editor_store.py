from __future__ import annotations

import logging
import time

from formdesk.core.config import settings
from formdesk.core.redis import get_redis
from formdesk.utils.form_editor import FormEditor

logger = logging.getLogger("formdesk.editor")

# Fallback when redis is not reachable: key -> (expires_at, payload)
_local: dict[str, tuple[float, str]] = {}


def _key(user_id: int, event_id: int) -> str:
    return f"editor:{user_id}:{event_id}"


def _read(key: str) -> str | None:
    r = get_redis()
    if r is not None:
        try:
            return r.get(key)
        except Exception as exc:
            logger.warning("Editor draft read failed, using local store: %s", exc)
    item = _local.get(key)
    if item is None:
        return None
    expires_at, payload = item
    if expires_at < time.monotonic():
        _local.pop(key, None)
        return None
    return payload


def _write(key: str, payload: str) -> None:
    ttl = settings.EDITOR_DRAFT_TTL_SECONDS
    r = get_redis()
    if r is not None:
        try:
            r.setex(key, ttl, payload)
            return
        except Exception as exc:
            logger.warning("Editor draft write failed, using local store: %s", exc)
    now = time.monotonic()
    for stale in [k for k, (expires, _) in _local.items() if expires <= now]:
        del _local[stale]
    _local[key] = (now + ttl, payload)


def get(user_id: int, event_id: int) -> FormEditor | None:
    raw = _read(_key(user_id, event_id))
    if raw is None:
        return None
    try:
        return FormEditor.loads(raw)
    except (ValueError, KeyError) as exc:
        logger.warning("Discarding unreadable editor draft %s: %s", _key(user_id, event_id), exc)
        dispose(user_id, event_id)
        return None


def open_session(user_id: int, event) -> FormEditor:
    """Return the user's draft for `event`, creating it from the stored definition."""
    editor = get(user_id, event.id)
    if editor is None:
        editor = FormEditor.from_event(event)
        put(user_id, editor)
    return editor


def put(user_id: int, editor: FormEditor) -> None:
    _write(_key(user_id, editor.event_id), editor.dumps())


def dispose(user_id: int, event_id: int) -> None:
    key = _key(user_id, event_id)
    _local.pop(key, None)
    r = get_redis()
    if r is None:
        return
    try:
        r.delete(key)
    except Exception as exc:
        logger.warning("Editor draft delete failed: %s", exc)
