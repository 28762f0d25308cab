# core/prompt_seeding.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from utils.prompt_store import fetch_next_bank_prompt, fetch_prompt_difficulties, insert_daily_prompt
from utils.submission_store import day_start_utc

log = logging.getLogger("cleanup.seed")

DIFFICULTIES: tuple[str, ...] = ("very_easy", "easy", "medium", "advanced")


@dataclass(frozen=True)
class SeededPrompt:
    difficulty: str
    bank_id: int
    daily_prompt_id: str


async def ensure_daily_prompts(day: date) -> list[SeededPrompt]:
    """Make sure ``day`` has one daily prompt per difficulty.

    Missing difficulties are filled from the oldest available bank prompt.
    An empty bank for a difficulty is logged and skipped, not an error.
    """
    log.info("Ensuring daily prompts exist for %s", day.isoformat())
    start = day_start_utc(day)
    end = start + timedelta(days=1)

    existing = {d for d in await fetch_prompt_difficulties(start=start, end=end) if d in DIFFICULTIES}
    missing = [d for d in DIFFICULTIES if d not in existing]
    if not missing:
        log.info("Daily prompts already seeded for all difficulties.")
        return []

    seeded: list[SeededPrompt] = []
    for difficulty in missing:
        bank_prompt = await fetch_next_bank_prompt(difficulty)
        if bank_prompt is None:
            log.warning("No available prompt found for difficulty %s.", difficulty)
            continue
        row = await insert_daily_prompt(prompt_date=start, bank_prompt=bank_prompt)
        log.info("Seeded prompt %s for difficulty %s.", bank_prompt.id, difficulty)
        seeded.append(SeededPrompt(difficulty=difficulty, bank_id=bank_prompt.id, daily_prompt_id=row.id))
    return seeded
