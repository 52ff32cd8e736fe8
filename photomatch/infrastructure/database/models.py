"""SQLAlchemy models for the photo matching service."""
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Event(Base):
    """Event grouping uploaded photos."""

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    event_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    photos: Mapped[List["Photo"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan"
    )


class Photo(Base):
    """Uploaded photo and the AI-derived description attached to it."""

    __tablename__ = "photos"
    __table_args__ = (
        Index("idx_photos_event_created", "event_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    event_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    keywords: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    event_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    people_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    setting: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    colors: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    objects: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    mood: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    context_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    event: Mapped[Event] = relationship(back_populates="photos")
    faces: Mapped[List["Face"]] = relationship(
        back_populates="photo",
        cascade="all, delete-orphan",
        order_by="Face.created_at"
    )


class Face(Base):
    """Face detected in a photo."""

    __tablename__ = "faces"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    photo_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("photos.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    descriptor: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Comma-delimited descriptor components"
    )
    confidence: Mapped[float] = mapped_column(Float, comment="Face detection confidence score")
    thumbnail: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Cropped face image URL or data URI")
    bbox_left: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bbox_top: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bbox_width: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bbox_height: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    photo: Mapped[Photo] = relationship(back_populates="faces")
