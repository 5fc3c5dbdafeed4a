from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formdesk.db.base import Base


class Event(Base):
    """A form definition plus its metadata, published under `slug`."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # public URL key; unguessable, see utils/slug.py
    slug: Mapped[str] = mapped_column(String(96), unique=True, index=True)

    # gate on public acceptance (together with `deadline`)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    organizer_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    organizer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    organizer_phone: Mapped[str | None] = mapped_column(String(60), nullable=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    banner_color: Mapped[str] = mapped_column(String(20), default="#3b82f6")
    allow_multiple_submissions: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP"), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    owner = relationship("User", back_populates="events")
    fields = relationship("FormField", order_by="FormField.order_index", viewonly=True)
