from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from formdesk.core.rbac import require
from formdesk.db.models.event import Event
from formdesk.db.session import get_db
from formdesk.utils.answers import collect_raw_answers, deserialize_choices, field_input_name
from formdesk.utils.availability import deadline_passed, is_accepting
from formdesk.utils.field_types import FieldType, capabilities
from formdesk.utils.form_store import PersistenceError, load_fields, record_submission
from formdesk.utils.validation import validate

logger = logging.getLogger("formdesk.public")

router = APIRouter(prefix="/f", tags=["public"])


def _published_event(db: Session, slug: str) -> Event:
    e = db.query(Event).filter(Event.slug == slug).first()
    # an inactive event is indistinguishable from a missing one
    require(e is not None and e.is_active, "Form not found", 404)
    return e


def _render_form(request: Request, event: Event, fields, *, values=None, errors=None, general_error=None,
                 status_code: int = 200):
    return request.app.state.templates.TemplateResponse(
        request,
        "public/form.html",
        {
            "event": event,
            "fields": fields,
            "values": values or {},
            "errors": errors or {},
            "general_error": general_error,
            "field_input_name": field_input_name,
            "capabilities": capabilities,
            "deserialize_choices": deserialize_choices,
            "FieldType": FieldType,
        },
        status_code=status_code,
    )


def _render_closed(request: Request, event: Event):
    return request.app.state.templates.TemplateResponse(request, "public/closed.html", {"event": event})


@router.get("/{slug}", response_class=HTMLResponse)
def form_page(request: Request, slug: str, db: Session = Depends(get_db)):
    e = _published_event(db, slug)
    if deadline_passed(e):
        return _render_closed(request, e)
    return _render_form(request, e, load_fields(db, e.id))


@router.post("/{slug}", response_class=HTMLResponse)
async def submit(request: Request, slug: str, db: Session = Depends(get_db)):
    e = _published_event(db, slug)
    if not is_accepting(e):
        return _render_closed(request, e)

    fields = load_fields(db, e.id)
    form = await request.form()
    raw = collect_raw_answers(fields, form)

    errors = validate(fields, raw)
    if errors:
        return _render_form(request, e, fields, values=raw, errors=errors, status_code=400)

    try:
        submission = record_submission(db, e, fields, raw, user_agent=request.headers.get("user-agent"))
    except PersistenceError as exc:
        return _render_form(request, e, fields, values=raw, general_error=str(exc), status_code=500)

    logger.info("Submission %s recorded for event %s", submission.id, e.id)
    return RedirectResponse(f"/f/{slug}/success", status_code=303)


@router.get("/{slug}/success", response_class=HTMLResponse)
def success(request: Request, slug: str, db: Session = Depends(get_db)):
    e = _published_event(db, slug)
    return request.app.state.templates.TemplateResponse(request, "public/success.html", {"event": e})
