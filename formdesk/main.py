from __future__ import annotations

import time
import logging
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse
from starlette.templating import Jinja2Templates

from formdesk.core.config import settings
from formdesk.core.realtime import RealtimeUnavailable, decode_message, subscribe_event_changes
from formdesk.core.security import SESSION_COOKIE, session_user_id
from formdesk.core.session_guard import SIGNIN_URL, session_lifetime_middleware
from formdesk.db.session import SessionLocal
from formdesk.utils.field_types import capabilities, field_palette
from formdesk.utils.form_store import PersistenceError

# Import models to populate SQLAlchemy metadata
import formdesk.db.models  # noqa: F401

from formdesk.db.models.user import User

from formdesk.auth.router import router as auth_router
from formdesk.modules.dashboard.router import router as dashboard_router
from formdesk.modules.builder.router import router as builder_router
from formdesk.modules.responses.router import router as responses_router
from formdesk.modules.public.router import router as public_router


logger = logging.getLogger("formdesk")

WS_PING_SECONDS = 12


def _is_fetch_request(request: Request) -> bool:
    return (request.headers.get("x-requested-with") or "").lower() == "fetch"


def _request_path_with_query(request: Request) -> str:
    path = request.url.path or "/"
    query = request.url.query or ""
    return f"{path}?{query}" if query else path


def _signin_redirect_url(request: Request) -> str:
    next_url = quote(_request_path_with_query(request), safe="")
    return f"{SIGNIN_URL}?redirect_url={next_url}"


def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return ("text/html" in accept) or (accept in ("", "*/*"))


templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.globals["app_name"] = settings.APP_NAME
templates.env.globals["field_palette"] = field_palette
templates.env.globals["capabilities"] = capabilities

app = FastAPI(title=settings.APP_NAME)
app.state.templates = templates

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
)

app.add_middleware(GZipMiddleware, minimum_size=800)

app.middleware("http")(session_lifetime_middleware)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start = time.perf_counter()
    resp = await call_next(request)
    resp.headers["X-Process-Time-ms"] = f"{(time.perf_counter() - start) * 1000:.2f}"
    return resp


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    resp = await call_next(request)
    resp.headers["X-Content-Type-Options"] = "nosniff"
    resp.headers["X-Frame-Options"] = "SAMEORIGIN"
    resp.headers["Referrer-Policy"] = "same-origin"
    resp.headers["Permissions-Policy"] = "geolocation=(), camera=(), microphone=()"
    return resp


@app.exception_handler(StarletteHTTPException)
async def http_exc_handler(request: Request, exc: StarletteHTTPException):
    # 401: send the browser to sign-in and come back afterwards
    if exc.status_code == 401:
        signin_url = _signin_redirect_url(request)
        if _is_fetch_request(request):
            resp = JSONResponse(
                status_code=401,
                content={"detail": "Session expired", "login_url": signin_url},
            )
            resp.headers["X-Session-Expired"] = "1"
            resp.delete_cookie(SESSION_COOKIE, path="/")
            return resp

        resp = RedirectResponse(signin_url, status_code=303)
        resp.delete_cookie(SESSION_COOKIE, path="/")
        return resp

    if _wants_html(request):
        return templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": exc.status_code, "detail": exc.detail},
            status_code=exc.status_code,
        )

    return await http_exception_handler(request, exc)


@app.exception_handler(PersistenceError)
async def persistence_exc_handler(request: Request, exc: PersistenceError):
    # the store has already rolled back and logged the cause
    if _wants_html(request):
        return templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": 500, "detail": str(exc)},
            status_code=500,
        )
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exc_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", exc_info=exc)

    if _wants_html(request):
        return templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": 500, "detail": "Something went wrong. Please try again."},
            status_code=500,
        )

    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


# Routers
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(builder_router)
app.include_router(responses_router)
app.include_router(public_router)


@app.get("/health", response_class=JSONResponse)
def health():
    return {"status": "ok", "app": settings.APP_NAME}


@app.get("/", response_class=HTMLResponse)
def landing(request: Request):
    signed_in = session_user_id(request.cookies.get(SESSION_COOKIE)) is not None
    return templates.TemplateResponse(request, "landing.html", {"signed_in": signed_in})


def _user_exists(user_id: int) -> bool:
    db = SessionLocal()
    try:
        return db.get(User, user_id) is not None
    finally:
        db.close()


@app.websocket("/ws/events")
async def ws_events(websocket: WebSocket):
    """Push a notice to the dashboard whenever the owner's event list changes."""
    await websocket.accept()
    token = websocket.cookies.get(SESSION_COOKIE)
    user_id = session_user_id(token)

    if not user_id or not _user_exists(user_id):
        await websocket.send_json({"type": "error", "reason": "unauthorized"})
        await websocket.close(code=4401)
        return

    try:
        async with subscribe_event_changes(user_id) as pubsub:
            await websocket.send_json({"type": "ready", "user_id": user_id})
            last_ping = time.monotonic()

            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                change = decode_message(message)
                if change is not None:
                    await websocket.send_json({"type": "events_changed", **change})

                if time.monotonic() - last_ping >= WS_PING_SECONDS:
                    if session_user_id(token) != user_id:
                        await websocket.send_json({"type": "error", "reason": "session_expired"})
                        await websocket.close(code=4401)
                        break
                    await websocket.send_json({"type": "ping", "ts": int(time.time())})
                    last_ping = time.monotonic()

    except RealtimeUnavailable as exc:
        logger.warning("Realtime updates unavailable: %s", exc)
        await websocket.send_json({"type": "error", "reason": "realtime_unavailable"})
        await websocket.close(code=1013)
    except WebSocketDisconnect:
        return
    except Exception:
        logger.exception("Event websocket error")
        await websocket.close(code=1011)
