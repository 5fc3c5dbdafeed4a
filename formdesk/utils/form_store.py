from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from formdesk.db.models.event import Event
from formdesk.db.models.form_field import FormField
from formdesk.db.models.submission import FormSubmission, SubmissionAnswer
from formdesk.utils.form_editor import FormEditor

logger = logging.getLogger("formdesk.store")


class PersistenceError(RuntimeError):
    """A storage call failed; the transaction has been rolled back."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def load_fields(db: Session, event_id: int) -> list[FormField]:
    return list(
        db.scalars(
            select(FormField)
            .where(FormField.event_id == event_id)
            .order_by(FormField.order_index.asc(), FormField.id.asc())
        )
    )


def load_submissions(db: Session, event_id: int) -> list[FormSubmission]:
    """Newest first, answers eagerly loaded."""
    return list(
        db.scalars(
            select(FormSubmission)
            .where(FormSubmission.event_id == event_id)
            .options(selectinload(FormSubmission.answers))
            .order_by(FormSubmission.submitted_at.desc(), FormSubmission.id.desc())
        )
    )


def save_form_definition(db: Session, event: Event, editor: FormEditor) -> list[FormField]:
    """Persist an editor session: event settings, then a full replace of the field rows.

    Fields are not diffed: every existing row for the event is deleted and the
    editor's list is inserted with fresh ids. Both steps share one transaction.
    Two concurrent saves of the same event are still last-writer-wins.
    """
    editor.check_definition()
    s = editor.settings
    try:
        event.title = s.title.strip()
        event.description = (s.description or "").strip() or None
        event.is_active = bool(s.is_active)
        event.start_date = s.start_date
        event.end_date = s.end_date
        event.deadline = s.deadline
        event.location = (s.location or "").strip() or None
        event.event_type = (s.event_type or "").strip() or None
        event.organizer_name = (s.organizer_name or "").strip() or None
        event.organizer_email = (s.organizer_email or "").strip() or None
        event.organizer_phone = (s.organizer_phone or "").strip() or None
        event.max_participants = s.max_participants
        event.banner_color = s.banner_color or "#3b82f6"
        event.updated_at = _now()

        db.execute(delete(FormField).where(FormField.event_id == event.id))
        rows = [FormField(**payload) for payload in editor.to_payload()]
        db.add_all(rows)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Saving form definition for event %s failed", event.id)
        raise PersistenceError("Failed to save the form.") from exc

    logger.info("Saved event %s with %d field(s)", event.id, len(rows))
    return load_fields(db, event.id)


def record_submission(
    db: Session,
    event: Event,
    fields: Iterable[FormField],
    raw_answers: Mapping[str, str],
    *,
    user_agent: str | None = None,
) -> FormSubmission:
    """Store one submission plus exactly one answer row per field ("" when unanswered)."""
    try:
        submission = FormSubmission(
            event_id=event.id,
            submitted_at=_now(),
            ip_address=None,
            user_agent=user_agent[:512] if user_agent else None,
            is_manually_completed=False,
        )
        db.add(submission)
        db.flush()
        db.add_all(
            SubmissionAnswer(
                submission_id=submission.id,
                field_id=f.id,
                answer=raw_answers.get(str(f.id)) or "",
            )
            for f in fields
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Recording submission for event %s failed", event.id)
        raise PersistenceError("Failed to submit form. Please try again.") from exc
    return submission


def update_submission_answers(
    db: Session,
    submission: FormSubmission,
    fields: Iterable[FormField],
    edited: Mapping[str, str],
) -> None:
    """Owner edit: overwrite answers for the given fields, creating missing rows."""
    existing = {a.field_id: a for a in submission.answers}
    try:
        for f in fields:
            key = str(f.id)
            if key not in edited:
                continue
            value = edited[key] or ""
            answer = existing.get(f.id)
            if answer is None:
                db.add(SubmissionAnswer(submission_id=submission.id, field_id=f.id, answer=value))
            else:
                answer.answer = value
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Updating submission %s failed", submission.id)
        raise PersistenceError("Failed to update the response.") from exc


def _delete_submissions(db: Session, submission_ids: list[int]) -> None:
    if not submission_ids:
        return
    # answers first, then their submissions
    db.execute(delete(SubmissionAnswer).where(SubmissionAnswer.submission_id.in_(submission_ids)))
    db.execute(delete(FormSubmission).where(FormSubmission.id.in_(submission_ids)))


def delete_submission(db: Session, submission: FormSubmission) -> None:
    try:
        _delete_submissions(db, [submission.id])
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Deleting submission %s failed", submission.id)
        raise PersistenceError("Failed to delete the response.") from exc


def delete_event(db: Session, event: Event) -> None:
    try:
        ids = list(db.scalars(select(FormSubmission.id).where(FormSubmission.event_id == event.id)))
        _delete_submissions(db, ids)
        db.execute(delete(FormField).where(FormField.event_id == event.id))
        db.delete(event)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Deleting event %s failed", event.id)
        raise PersistenceError("Failed to delete the event.") from exc


def search_submissions(submissions: list[FormSubmission], fields: Iterable[FormField], query: str) -> list[FormSubmission]:
    """Case-insensitive match on any answer value or the label of the answered field."""
    q = (query or "").strip().lower()
    if not q:
        return submissions
    labels = {f.id: (f.label or "").lower() for f in fields}
    return [
        s
        for s in submissions
        if any(q in (a.answer or "").lower() or q in labels.get(a.field_id, "") for a in s.answers)
    ]
