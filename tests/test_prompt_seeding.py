"""Tests for daily prompt seeding (core/prompt_seeding.py)."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from core.errors import PromptSeedError
from core.prompt_seeding import DIFFICULTIES, ensure_daily_prompts
from utils.models import DailyPrompt, PromptBankEntry

DAY = date(2026, 10, 16)
DAY_START = datetime(2026, 10, 16, tzinfo=timezone.utc)


async def _bank(factory, entries: list[tuple[int, str, int]]):
    """entries: (id, difficulty, age in days)."""
    async with factory() as s:
        for bid, difficulty, age in entries:
            s.add(PromptBankEntry(
                id=bid,
                difficulty=difficulty,
                prompt_text=f"prompt {bid}",
                created_at=DAY_START - timedelta(days=age),
            ))
        await s.commit()


async def _prompts(factory) -> list[DailyPrompt]:
    async with factory() as s:
        return list((await s.execute(select(DailyPrompt).order_by(DailyPrompt.difficulty))).scalars().all())


@pytest.mark.asyncio
async def test_seeds_every_missing_difficulty_from_oldest_bank_entry(patch_db):
    await _bank(patch_db, [
        (1, "very_easy", 3), (2, "very_easy", 9),
        (3, "easy", 1), (4, "medium", 2), (5, "advanced", 5),
    ])

    seeded = await ensure_daily_prompts(DAY)

    assert [s.difficulty for s in seeded] == list(DIFFICULTIES)
    by_difficulty = {p.difficulty: p for p in await _prompts(patch_db)}
    assert by_difficulty["very_easy"].prompt_bank_id == 2
    assert by_difficulty["very_easy"].prompt_text == "prompt 2"
    assert {p.prompt_bank_id for p in by_difficulty.values()} == {2, 3, 4, 5}


@pytest.mark.asyncio
async def test_existing_difficulties_are_kept(patch_db):
    async with patch_db() as s:
        s.add(DailyPrompt(prompt_date=DAY_START, difficulty="easy", prompt_text="already"))
        s.add(DailyPrompt(prompt_date=DAY_START, difficulty="medium", prompt_text="already"))
        # Yesterday's prompt does not count for today.
        s.add(DailyPrompt(prompt_date=DAY_START - timedelta(days=1), difficulty="advanced", prompt_text="old"))
        await s.commit()
    await _bank(patch_db, [(1, "very_easy", 1), (2, "easy", 1), (3, "advanced", 1)])

    seeded = await ensure_daily_prompts(DAY)

    assert [s.difficulty for s in seeded] == ["very_easy", "advanced"]


@pytest.mark.asyncio
async def test_all_present_makes_no_writes(patch_db, caplog):
    async with patch_db() as s:
        for d in DIFFICULTIES:
            s.add(DailyPrompt(prompt_date=DAY_START, difficulty=d, prompt_text="x"))
        await s.commit()

    with caplog.at_level(logging.INFO, logger="cleanup.seed"):
        assert await ensure_daily_prompts(DAY) == []

    assert "already seeded" in caplog.text
    assert len(await _prompts(patch_db)) == len(DIFFICULTIES)


@pytest.mark.asyncio
async def test_empty_bank_is_a_warning_not_an_error(patch_db, caplog):
    await _bank(patch_db, [(1, "easy", 1)])

    with caplog.at_level(logging.WARNING, logger="cleanup.seed"):
        seeded = await ensure_daily_prompts(DAY)

    assert [s.difficulty for s in seeded] == ["easy"]
    assert "No available prompt found for difficulty very_easy" in caplog.text
    assert "No available prompt found for difficulty advanced" in caplog.text


@pytest.mark.asyncio
async def test_read_failure_is_fatal(monkeypatch):
    import core.prompt_seeding as seeding

    monkeypatch.setattr(
        seeding,
        "fetch_prompt_difficulties",
        AsyncMock(side_effect=PromptSeedError("Failed to fetch existing daily prompts: boom")),
    )

    with pytest.raises(PromptSeedError):
        await ensure_daily_prompts(DAY)
