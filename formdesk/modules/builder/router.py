from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from formdesk.auth.deps import get_current_user
from formdesk.core.rbac import require, require_owned_event
from formdesk.core.realtime import publish_event_change
from formdesk.db.models.event import Event
from formdesk.db.session import get_db
from formdesk.schemas import EventSettings, ValidationRule
from formdesk.utils import editor_store
from formdesk.utils.field_types import DefinitionError, capabilities, field_palette, parse_field_type
from formdesk.utils.form_editor import FormEditor
from formdesk.utils.form_store import PersistenceError, save_form_definition

logger = logging.getLogger("formdesk.builder")

router = APIRouter(prefix="/dashboard/events", tags=["builder"])


def _editor_url(event_id: int) -> str:
    return f"/dashboard/events/{event_id}"


def _load(db: Session, user, event_id: int) -> tuple[Event, FormEditor]:
    e = require_owned_event(user, db.get(Event, event_id))
    return e, editor_store.open_session(user.id, e)


def _render(request: Request, event: Event, editor: FormEditor, user, *, errors: list[str] | None = None,
            status_code: int = 200):
    return request.app.state.templates.TemplateResponse(
        request,
        "dashboard/editor.html",
        {
            "user": user,
            "event": event,
            "editor": editor,
            "palette": field_palette(),
            "capabilities": capabilities,
            "errors": errors or [],
        },
        status_code=status_code,
    )


def _opt_float(v: str) -> float | None:
    v = (v or "").strip()
    if not v:
        return None
    return float(v)


def _opt_int(v: str) -> int | None:
    v = (v or "").strip()
    if not v:
        return None
    return int(v)


def _options_from_text(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


@router.get("/{event_id}", response_class=HTMLResponse)
def editor_page(request: Request, event_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    e, editor = _load(db, user, event_id)
    return _render(request, e, editor, user)


@router.post("/{event_id}/settings")
def update_settings(
    request: Request,
    event_id: int,
    title: str = Form(""),
    description: str = Form(""),
    is_active: str = Form(""),
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
    e, editor = _load(db, user, event_id)
    try:
        settings = EventSettings(
            title=title,
            description=description or None,
            is_active=bool(is_active),
            start_date=start_date or None,
            end_date=end_date or None,
            deadline=deadline or None,
            location=location or None,
            event_type=event_type or None,
            organizer_name=organizer_name or None,
            organizer_email=organizer_email or None,
            organizer_phone=organizer_phone or None,
            max_participants=max_participants or None,
            banner_color=banner_color or "#3b82f6",
        )
    except ValidationError as exc:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        return _render(request, e, editor, user, errors=errors, status_code=400)

    editor.update_settings(settings)
    editor_store.put(user.id, editor)
    return RedirectResponse(_editor_url(event_id), status_code=303)


@router.post("/{event_id}/fields")
def add_field(
    request: Request,
    event_id: int,
    field_type: str = Form(...),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    e, editor = _load(db, user, event_id)
    try:
        ft = parse_field_type(field_type)
    except DefinitionError as exc:
        return _render(request, e, editor, user, errors=exc.problems, status_code=400)

    editor.add_field(ft)
    editor_store.put(user.id, editor)
    return RedirectResponse(_editor_url(event_id), status_code=303)


@router.post("/{event_id}/fields/reorder")
def reorder_fields(
    request: Request,
    event_id: int,
    from_index: int = Form(...),
    to_index: int = Form(...),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    e, editor = _load(db, user, event_id)
    try:
        editor.reorder_fields(from_index, to_index)
    except IndexError:
        return _render(request, e, editor, user, errors=["Field position is out of range."], status_code=400)

    editor_store.put(user.id, editor)
    return RedirectResponse(_editor_url(event_id), status_code=303)


@router.post("/{event_id}/fields/{field_id}")
def update_field(
    request: Request,
    event_id: int,
    field_id: str,
    label: str = Form(""),
    placeholder: str = Form(""),
    required: str = Form(""),
    options: str = Form(""),
    min_length: str = Form(""),
    max_length: str = Form(""),
    min_value: str = Form(""),
    max_value: str = Form(""),
    pattern: str = Form(""),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    e, editor = _load(db, user, event_id)
    try:
        current = editor.get_field(field_id)
    except KeyError:
        current = None
    require(current is not None, "Field not found", 404)

    caps = capabilities(current.field_type)
    try:
        rule = ValidationRule(
            min_length=_opt_int(min_length),
            max_length=_opt_int(max_length),
            min=_opt_float(min_value),
            max=_opt_float(max_value),
            pattern=pattern.strip() or None,
        )
    except ValueError as exc:
        # covers pydantic.ValidationError and bad int()/float() input
        logger.debug("Rejected validation rule for field %s: %s", field_id, exc)
        return _render(request, e, editor, user, errors=["Validation rules are invalid."], status_code=400)

    updated = current.model_copy(
        update={
            "label": label,
            "placeholder": placeholder,
            "required": bool(required),
            "options": _options_from_text(options) if caps.has_options else None,
            "validation": None if rule.is_empty() else rule,
        }
    )
    editor.update_field(updated)
    editor_store.put(user.id, editor)
    return RedirectResponse(_editor_url(event_id), status_code=303)


@router.post("/{event_id}/fields/{field_id}/select")
def select_field(event_id: int, field_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    _, editor = _load(db, user, event_id)
    try:
        editor.select(field_id)
    except KeyError:
        require(False, "Field not found", 404)
    editor_store.put(user.id, editor)
    return RedirectResponse(_editor_url(event_id), status_code=303)


@router.post("/{event_id}/fields/{field_id}/delete")
def delete_field(event_id: int, field_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    _, editor = _load(db, user, event_id)
    try:
        editor.delete_field(field_id)
    except KeyError:
        require(False, "Field not found", 404)
    editor_store.put(user.id, editor)
    return RedirectResponse(_editor_url(event_id), status_code=303)


@router.post("/{event_id}/save")
def save(request: Request, event_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    e, editor = _load(db, user, event_id)
    try:
        save_form_definition(db, e, editor)
    except DefinitionError as exc:
        return _render(request, e, editor, user, errors=exc.problems, status_code=400)
    except PersistenceError as exc:
        return _render(request, e, editor, user, errors=[str(exc)], status_code=500)

    editor_store.dispose(user.id, event_id)
    publish_event_change(user.id, "updated", event_id)
    return RedirectResponse(_editor_url(event_id), status_code=303)


@router.post("/{event_id}/discard")
def discard(event_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    require_owned_event(user, db.get(Event, event_id))
    editor_store.dispose(user.id, event_id)
    return RedirectResponse(_editor_url(event_id), status_code=303)
