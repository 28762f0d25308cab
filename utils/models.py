from __future__ import annotations

"""
SQLAlchemy models for the tables the cleanup job reads and deletes from.

The schema itself is owned by the app; these mappings only mirror the columns
the job touches. ``prompt_bank_available`` is a view in production.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class DailyPrompt(Base):
    __tablename__ = "daily_prompts"

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    prompt_bank_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    prompt_text: Mapped[str] = mapped_column(Text, default="")
    # Start of the prompt's UTC calendar day.
    prompt_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    difficulty: Mapped[str] = mapped_column(String(16))

    __table_args__ = (Index("ix_daily_prompts_date_difficulty", "prompt_date", "difficulty"),)


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), index=True)
    daily_prompt_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), ForeignKey("daily_prompts.id"), index=True)
    original_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now_utc)


class PromptBankEntry(Base):
    __tablename__ = "prompt_bank_available"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    prompt_text: Mapped[str] = mapped_column(Text, default="")
    difficulty: Mapped[str] = mapped_column(String(16), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now_utc)
