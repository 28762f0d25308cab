# utils/prompt_store.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from core.errors import PromptSeedError
from utils.db import get_sessionmaker
from utils.models import DailyPrompt, PromptBankEntry

log = logging.getLogger("prompt_store")


async def fetch_prompt_difficulties(*, start: datetime, end: datetime) -> list[str]:
    """Difficulties of daily prompts dated in ``[start, end)``."""
    try:
        Session = get_sessionmaker()
        async with Session() as session:
            res = await session.execute(
                select(DailyPrompt.difficulty)
                .where(DailyPrompt.prompt_date >= start)
                .where(DailyPrompt.prompt_date < end)
            )
            return [str(d) for d in res.scalars().all() if d is not None]
    except SQLAlchemyError as e:
        raise PromptSeedError(f"Failed to fetch existing daily prompts: {e}") from e


async def fetch_next_bank_prompt(difficulty: str) -> PromptBankEntry | None:
    """Oldest unused bank prompt for ``difficulty``, or None."""
    try:
        Session = get_sessionmaker()
        async with Session() as session:
            res = await session.execute(
                select(PromptBankEntry)
                .where(PromptBankEntry.difficulty == difficulty)
                .order_by(PromptBankEntry.created_at.asc(), PromptBankEntry.id.asc())
                .limit(1)
            )
            return res.scalars().first()
    except SQLAlchemyError as e:
        raise PromptSeedError(f"Failed to fetch prompt for {difficulty}: {e}") from e


async def insert_daily_prompt(*, prompt_date: datetime, bank_prompt: PromptBankEntry) -> DailyPrompt:
    try:
        Session = get_sessionmaker()
        async with Session() as session:
            row = DailyPrompt(
                prompt_bank_id=bank_prompt.id,
                prompt_text=bank_prompt.prompt_text,
                prompt_date=prompt_date,
                difficulty=bank_prompt.difficulty,
            )
            session.add(row)
            await session.commit()
            return row
    except SQLAlchemyError as e:
        raise PromptSeedError(
            f"Failed to insert daily prompt for {bank_prompt.difficulty}: {e}"
        ) from e
