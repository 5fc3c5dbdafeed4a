from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from formdesk.auth.deps import get_current_user
from formdesk.core.rbac import require_owned_event
from formdesk.core.realtime import publish_event_change
from formdesk.db.models.event import Event
from formdesk.db.session import get_db
from formdesk.utils import editor_store
from formdesk.utils.form_store import PersistenceError, delete_event
from formdesk.utils.slug import generate_slug

logger = logging.getLogger("formdesk.dashboard")

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _opt_str(v: str) -> str | None:
    v = (v or "").strip()
    return v or None


def _opt_date(v: str) -> date | None:
    v = (v or "").strip()
    if not v:
        return None
    try:
        return date.fromisoformat(v)
    except ValueError:
        return None


def _opt_int(v: str) -> int | None:
    v = (v or "").strip()
    if not v:
        return None
    try:
        n = int(v)
    except ValueError:
        return None
    return n if n > 0 else None


def _render(request: Request, db: Session, user, *, error: str | None = None, status_code: int = 200):
    events = (
        db.query(Event)
        .filter(Event.user_id == user.id)
        .order_by(Event.created_at.desc(), Event.id.desc())
        .all()
    )
    return request.app.state.templates.TemplateResponse(
        request,
        "dashboard/index.html",
        {"user": user, "events": events, "error": error},
        status_code=status_code,
    )


@router.get("", response_class=HTMLResponse)
def page(request: Request, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _render(request, db, user)


@router.post("/events")
def create(
    request: Request,
    title: str = Form(""),
    description: str = Form(""),
    start_date: str = Form(""),
    end_date: str = Form(""),
    deadline: str = Form(""),
    location: str = Form(""),
    event_type: str = Form(""),
    organizer_name: str = Form(""),
    organizer_email: str = Form(""),
    organizer_phone: str = Form(""),
    max_participants: str = Form(""),
    banner_color: str = Form("#3b82f6"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    if not title.strip():
        return _render(request, db, user, error="Event title is required.", status_code=400)

    e = Event(
        user_id=user.id,
        title=title.strip(),
        description=_opt_str(description),
        slug=generate_slug(),
        is_active=True,
        start_date=_opt_date(start_date),
        end_date=_opt_date(end_date),
        deadline=_opt_date(deadline),
        location=_opt_str(location),
        event_type=_opt_str(event_type),
        organizer_name=_opt_str(organizer_name),
        organizer_email=_opt_str(organizer_email),
        organizer_phone=_opt_str(organizer_phone),
        max_participants=_opt_int(max_participants),
        banner_color=_opt_str(banner_color) or "#3b82f6",
    )
    db.add(e)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Creating event failed")
        return _render(request, db, user, error="Failed to create event. Please try again.", status_code=500)
    db.refresh(e)

    publish_event_change(user.id, "created", e.id)
    return RedirectResponse(f"/dashboard/events/{e.id}", status_code=303)


@router.post("/events/{event_id}/delete")
def delete(request: Request, event_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    e = require_owned_event(user, db.get(Event, event_id))
    try:
        delete_event(db, e)
    except PersistenceError as exc:
        return _render(request, db, user, error=str(exc), status_code=500)

    editor_store.dispose(user.id, event_id)
    publish_event_change(user.id, "deleted", event_id)
    return RedirectResponse("/dashboard", status_code=303)
