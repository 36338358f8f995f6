"""SQLAlchemy database models."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class BookModel(Base):
    __tablename__ = "books"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=True)
    page_count = Column(Integer, nullable=False)
    genre = Column(String(50), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ReadingInstanceModel(Base):
    __tablename__ = "reading_instances"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default="in_progress")  # in_progress | completed | abandoned
    why_started = Column(Text, nullable=True)
    current_page = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_reading_instances_book_status", "book_id", "status"),
        # at most one in_progress instance per book
        Index(
            "uq_reading_instances_active_book",
            "book_id",
            unique=True,
            sqlite_where=text("status = 'in_progress'"),
            postgresql_where=text("status = 'in_progress'"),
        ),
    )


class AbandonmentEventModel(Base):
    __tablename__ = "abandonment_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reading_instance_id = Column(
        Uuid, ForeignKey("reading_instances.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    abandoned_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    page_abandoned = Column(Integer, nullable=False)
    percent_complete = Column(Float, nullable=False)
    primary_reason = Column(String(50), nullable=False)
    emotional_state = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)


class CompletionEventModel(Base):
    __tablename__ = "completion_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reading_instance_id = Column(
        Uuid, ForeignKey("reading_instances.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completion_feeling = Column(String(20), nullable=False)
    almost_quit = Column(Boolean, nullable=False, default=False)
    almost_quit_page = Column(Integer, nullable=True)


class ChallengeModel(Base):
    __tablename__ = "challenges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reading_instance_id = Column(
        Uuid, ForeignKey("reading_instances.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    challenged_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    current_page = Column(Integer, nullable=False)
    doubt_reason = Column(Text, nullable=False)
    system_recommendation = Column(String(30), nullable=False)
    recommendation_details = Column(Text, nullable=True)
    user_decision = Column(String(20), nullable=True)  # continued | quit
