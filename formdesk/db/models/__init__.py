# Import all models so SQLAlchemy metadata is fully populated on startup.
from formdesk.db.models.user import User
from formdesk.db.models.event import Event
from formdesk.db.models.form_field import FormField
from formdesk.db.models.submission import FormSubmission, SubmissionAnswer


__all__ = [
    "User",
    "Event",
    "FormField",
    "FormSubmission",
    "SubmissionAnswer",
]
