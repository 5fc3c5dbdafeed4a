from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from formdesk.auth.deps import get_current_user
from formdesk.core.rbac import require, require_owned_event
from formdesk.db.models.event import Event
from formdesk.db.models.submission import FormSubmission
from formdesk.db.session import get_db
from formdesk.utils.answers import answers_by_field, collect_raw_answers, deserialize_choices
from formdesk.utils.csv_export import export_filename, format_timestamp, to_csv
from formdesk.utils.form_store import (
    PersistenceError,
    delete_submission,
    load_fields,
    load_submissions,
    search_submissions,
    update_submission_answers,
)

logger = logging.getLogger("formdesk.responses")

router = APIRouter(prefix="/dashboard/events/{event_id}/responses", tags=["responses"])


def _owned_submission(db: Session, event: Event, submission_id: int) -> FormSubmission:
    s = db.scalars(
        select(FormSubmission)
        .where(FormSubmission.id == submission_id)
        .options(selectinload(FormSubmission.answers))
    ).first()
    require(s is not None and s.event_id == event.id, "Response not found", 404)
    return s


def _render_detail(request: Request, db: Session, user, event: Event, submission: FormSubmission, *,
                   error: str | None = None, status_code: int = 200):
    return request.app.state.templates.TemplateResponse(
        request,
        "responses/detail.html",
        {
            "user": user,
            "event": event,
            "fields": load_fields(db, event.id),
            "submission": submission,
            "answers": answers_by_field(submission),
            "deserialize_choices": deserialize_choices,
            "format_timestamp": format_timestamp,
            "error": error,
        },
        status_code=status_code,
    )


@router.get("", response_class=HTMLResponse)
def page(request: Request, event_id: int, q: str = "", db: Session = Depends(get_db), user=Depends(get_current_user)):
    e = require_owned_event(user, db.get(Event, event_id))
    fields = load_fields(db, e.id)
    submissions = load_submissions(db, e.id)
    shown = search_submissions(submissions, fields, q)
    return request.app.state.templates.TemplateResponse(
        request,
        "responses/index.html",
        {
            "user": user,
            "event": e,
            "fields": fields,
            "submissions": shown,
            "total": len(submissions),
            "q": q,
            "answers_by_field": answers_by_field,
            "format_timestamp": format_timestamp,
        },
    )


@router.get("/export.csv")
def export_csv(event_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    e = require_owned_event(user, db.get(Event, event_id))
    body = to_csv(e, load_fields(db, e.id), load_submissions(db, e.id))
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(e)}"'},
    )


@router.get("/{submission_id}", response_class=HTMLResponse)
def detail(request: Request, event_id: int, submission_id: int, db: Session = Depends(get_db),
           user=Depends(get_current_user)):
    e = require_owned_event(user, db.get(Event, event_id))
    s = _owned_submission(db, e, submission_id)
    return _render_detail(request, db, user, e, s)


@router.post("/{submission_id}/edit")
async def edit(request: Request, event_id: int, submission_id: int, db: Session = Depends(get_db),
               user=Depends(get_current_user)):
    e = require_owned_event(user, db.get(Event, event_id))
    s = _owned_submission(db, e, submission_id)
    fields = load_fields(db, e.id)

    form = await request.form()
    edited = collect_raw_answers(fields, form)
    try:
        update_submission_answers(db, s, fields, edited)
    except PersistenceError as exc:
        return _render_detail(request, db, user, e, s, error=str(exc), status_code=500)

    logger.info("Response %s of event %s edited by owner", s.id, e.id)
    return RedirectResponse(f"/dashboard/events/{e.id}/responses/{s.id}", status_code=303)


@router.post("/{submission_id}/delete")
def delete(request: Request, event_id: int, submission_id: int, db: Session = Depends(get_db),
           user=Depends(get_current_user)):
    e = require_owned_event(user, db.get(Event, event_id))
    s = _owned_submission(db, e, submission_id)
    try:
        delete_submission(db, s)
    except PersistenceError as exc:
        return _render_detail(request, db, user, e, s, error=str(exc), status_code=500)
    return RedirectResponse(f"/dashboard/events/{e.id}/responses", status_code=303)
