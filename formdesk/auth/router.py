from __future__ import annotations

import logging
import re
from urllib.parse import urlparse

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from formdesk.core.config import settings
from formdesk.core.security import (
    SESSION_COOKIE,
    AuthNotConfigured,
    hash_password,
    session_user_id,
    sign_session,
    verify_password,
)
from formdesk.core.session_guard import clear_auth_cookies
from formdesk.db.models.user import User
from formdesk.db.session import get_db

logger = logging.getLogger("formdesk.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def _safe_next_url(next_url: str | None) -> str:
    if not next_url:
        return "/dashboard"

    parsed = urlparse(next_url)
    if parsed.scheme or parsed.netloc:
        return "/dashboard"

    path = parsed.path or "/dashboard"
    if not path.startswith("/"):
        path = "/" + path.lstrip("/")
    if path.startswith("//"):
        return "/dashboard"
    if path.startswith("/auth/"):
        return "/dashboard"

    if parsed.query:
        path = f"{path}?{parsed.query}"
    return path


def _signed_in(request: Request) -> bool:
    return session_user_id(request.cookies.get(SESSION_COOKIE)) is not None


def _start_session(user: User, target_url: str) -> RedirectResponse:
    sid = sign_session({"user_id": user.id})
    resp = RedirectResponse(target_url or "/dashboard", status_code=303)
    resp.set_cookie(
        SESSION_COOKIE,
        sid,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
        secure=settings.COOKIE_SECURE,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        path="/",
    )
    return resp


@router.get("/signin")
def signin_page(request: Request, redirect_url: str = ""):
    if _signed_in(request):
        return RedirectResponse("/dashboard", status_code=303)
    return request.app.state.templates.TemplateResponse(
        request,
        "auth/signin.html",
        {"next_url": _safe_next_url(redirect_url)},
    )


@router.post("/signin")
def signin(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    redirect_url: str = Form(""),
    db: Session = Depends(get_db),
):
    target_url = _safe_next_url(redirect_url)
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        return request.app.state.templates.TemplateResponse(
            request,
            "auth/signin.html",
            {"error": "Invalid email or password.", "next_url": target_url, "email": email},
            status_code=400,
        )

    try:
        return _start_session(user, target_url)
    except AuthNotConfigured:
        logger.error("Sign-in attempted but SECRET_KEY is not configured")
        return request.app.state.templates.TemplateResponse(
            request,
            "auth/signin.html",
            {"error": "Sign-in is not available right now.", "next_url": target_url, "email": email},
            status_code=503,
        )


@router.get("/signup")
def signup_page(request: Request):
    if _signed_in(request):
        return RedirectResponse("/dashboard", status_code=303)
    return request.app.state.templates.TemplateResponse(request, "auth/signup.html", {})


@router.post("/signup")
def signup(
    request: Request,
    display_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    db: Session = Depends(get_db),
):
    email = email.strip().lower()
    error = None
    if password != confirm_password:
        error = "Passwords do not match"
    elif len(password) < MIN_PASSWORD_LENGTH:
        error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    elif not display_name.strip():
        error = "Display name is required"
    elif not _EMAIL_RE.fullmatch(email):
        error = "Please enter a valid email address"
    elif db.query(User).filter(User.email == email).first() is not None:
        error = "An account with this email already exists"

    if error:
        return request.app.state.templates.TemplateResponse(
            request,
            "auth/signup.html",
            {"error": error, "display_name": display_name, "email": email},
            status_code=400,
        )

    user = User(email=email, display_name=display_name.strip(), password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return request.app.state.templates.TemplateResponse(
            request,
            "auth/signup.html",
            {"error": "An account with this email already exists", "display_name": display_name, "email": email},
            status_code=400,
        )
    db.refresh(user)
    logger.info("New account %s", user.id)

    try:
        return _start_session(user, "/dashboard")
    except AuthNotConfigured:
        logger.error("Account created but SECRET_KEY is not configured; cannot sign in")
        return RedirectResponse("/auth/signin", status_code=303)


@router.post("/signout")
def signout():
    resp = RedirectResponse("/auth/signin", status_code=303)
    clear_auth_cookies(resp)
    return resp
