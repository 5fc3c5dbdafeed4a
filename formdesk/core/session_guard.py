"""Hard ceiling on how long a signed-in session may live.

The `sid` cookie has its own signature lifetime; this guard adds an
independent cap measured from the first authenticated request, tracked in
a marker cookie. Once the cap is exceeded the session is ended no matter
what the signature says.
"""
from __future__ import annotations

import enum
import logging
import time

from fastapi import Request
from fastapi.responses import RedirectResponse

from formdesk.core.config import settings
from formdesk.core.security import SESSION_COOKIE, session_user_id

logger = logging.getLogger("formdesk.session")

MARKER_COOKIE = "app_session_started_at"
SIGNIN_URL = "/auth/signin"


class GuardAction(str, enum.Enum):
    PROCEED = "proceed"
    START = "start"            # authenticated, no marker yet: set it
    EXPIRE = "expire"          # marker older than the cap: sign out
    CLEAR_STALE = "clear"      # not authenticated but a marker is left over


def evaluate(authenticated: bool, marker: str | None, now_ms: int, cap_ms: int) -> GuardAction:
    if authenticated:
        if marker is None:
            return GuardAction.START
        try:
            started_at = int(marker)
        except ValueError:
            # unreadable marker: leave the session alone
            return GuardAction.PROCEED
        if now_ms - started_at > cap_ms:
            return GuardAction.EXPIRE
        return GuardAction.PROCEED
    if marker is not None:
        return GuardAction.CLEAR_STALE
    return GuardAction.PROCEED


def clear_auth_cookies(resp) -> None:
    resp.delete_cookie(SESSION_COOKIE, path="/")
    resp.delete_cookie(MARKER_COOKIE, path="/")


_warned = False


async def session_lifetime_middleware(request: Request, call_next):
    global _warned
    if not settings.auth_configured():
        # fail open: nothing to enforce without storage and signing key
        if not _warned:
            logger.error("DATABASE_URL or SECRET_KEY missing; session lifetime guard disabled")
            _warned = True
        return await call_next(request)

    cap_seconds = settings.SESSION_LIFETIME_CAP_SECONDS
    now_ms = int(time.time() * 1000)
    authenticated = session_user_id(request.cookies.get(SESSION_COOKIE)) is not None
    marker = request.cookies.get(MARKER_COOKIE)

    action = evaluate(authenticated, marker, now_ms, cap_seconds * 1000)

    if action == GuardAction.EXPIRE:
        logger.info("Session exceeded %ss cap; signing out", cap_seconds)
        resp = RedirectResponse(SIGNIN_URL, status_code=303)
        clear_auth_cookies(resp)
        return resp

    resp = await call_next(request)

    if action == GuardAction.START:
        resp.set_cookie(
            MARKER_COOKIE,
            str(now_ms),
            max_age=cap_seconds,
            path="/",
            httponly=True,
            samesite=settings.COOKIE_SAMESITE,
            secure=settings.COOKIE_SECURE,
        )
    elif action == GuardAction.CLEAR_STALE:
        resp.delete_cookie(MARKER_COOKIE, path="/")
    return resp
