"""Tests for the candidate fetch and row delete (utils/submission_store.py)."""
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from core.errors import SubmissionDeleteError, SubmissionFetchError
from utils.models import DailyPrompt, Submission
from utils.submission_store import day_start_utc, delete_submissions, fetch_expired_batch

CUTOFF = date(2026, 10, 16)


def _uid(n: int) -> str:
    return str(uuid.UUID(int=n))


def _day(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


async def _seed(factory, *, prompts: dict[int, date], submissions: list[tuple[int, int, int, str | None]]):
    """prompts: prompt n -> date; submissions: (id n, user n, prompt n, key)."""
    async with factory() as s:
        for pn, d in prompts.items():
            s.add(DailyPrompt(id=_uid(10_000 + pn), prompt_date=_day(d), difficulty="easy", prompt_text="p"))
        for sn, un, pn, key in submissions:
            s.add(Submission(id=_uid(sn), user_id=_uid(500 + un), daily_prompt_id=_uid(10_000 + pn), original_key=key))
        await s.commit()


class TestFetchExpiredBatch:

    @pytest.mark.asyncio
    async def test_only_prompts_before_cutoff(self, patch_db):
        await _seed(
            patch_db,
            prompts={1: date(2026, 10, 14), 2: date(2026, 10, 15), 3: CUTOFF, 4: date(2026, 10, 17)},
            submissions=[(1, 1, 1, "a"), (2, 1, 2, "b"), (3, 1, 3, "c"), (4, 1, 4, "d")],
        )

        rows = await fetch_expired_batch(cutoff_date=CUTOFF)

        assert [r.id for r in rows] == [_uid(1), _uid(2)]

    @pytest.mark.asyncio
    async def test_submission_without_prompt_is_excluded(self, patch_db):
        await _seed(
            patch_db,
            prompts={1: date(2026, 10, 1)},
            submissions=[(1, 1, 1, "a"), (2, 1, 99, "orphan")],
        )

        rows = await fetch_expired_batch(cutoff_date=CUTOFF)

        assert [r.id for r in rows] == [_uid(1)]

    @pytest.mark.asyncio
    async def test_ordered_by_id_and_limited(self, patch_db):
        await _seed(
            patch_db,
            prompts={1: date(2026, 10, 1)},
            submissions=[(n, n % 2, 1, f"k{n}") for n in (5, 3, 9, 1, 7)],
        )

        rows = await fetch_expired_batch(cutoff_date=CUTOFF, limit=3)

        assert [r.id for r in rows] == [_uid(1), _uid(3), _uid(5)]

    @pytest.mark.asyncio
    async def test_cursor_is_exclusive(self, patch_db):
        await _seed(
            patch_db,
            prompts={1: date(2026, 10, 1)},
            submissions=[(n, 1, 1, None) for n in (1, 2, 3, 4)],
        )

        rows = await fetch_expired_batch(cutoff_date=CUTOFF, after_id=_uid(2))

        assert [r.id for r in rows] == [_uid(3), _uid(4)]

    @pytest.mark.asyncio
    async def test_row_shape(self, patch_db):
        await _seed(patch_db, prompts={1: date(2026, 10, 1)}, submissions=[(1, 7, 1, None)])

        (row,) = await fetch_expired_batch(cutoff_date=CUTOFF)

        assert row.user_id == _uid(507)
        assert row.original_key is None
        assert row.prompt_date is not None

    @pytest.mark.asyncio
    async def test_empty_when_nothing_expired(self, patch_db):
        assert await fetch_expired_batch(cutoff_date=CUTOFF) == []

    @pytest.mark.asyncio
    async def test_read_error_is_fatal(self, monkeypatch):
        import utils.submission_store as store

        class _BrokenSession:
            async def __aenter__(self):
                raise OperationalError("SELECT", {}, Exception("connection refused"))

            async def __aexit__(self, *exc):
                return False

        monkeypatch.setattr(store, "get_sessionmaker", lambda: _BrokenSession)

        with pytest.raises(SubmissionFetchError, match="connection refused"):
            await fetch_expired_batch(cutoff_date=CUTOFF)


class TestDeleteSubmissions:

    @pytest.mark.asyncio
    async def test_deletes_only_given_ids(self, patch_db):
        await _seed(
            patch_db,
            prompts={1: date(2026, 10, 1)},
            submissions=[(n, 1, 1, None) for n in (1, 2, 3)],
        )

        n = await delete_submissions([_uid(1), _uid(3)])

        assert n == 2
        async with patch_db() as s:
            left = (await s.execute(select(Submission.id))).scalars().all()
        assert left == [_uid(2)]

    @pytest.mark.asyncio
    async def test_empty_id_list_is_noop(self, patch_db):
        assert await delete_submissions([]) == 0

    @pytest.mark.asyncio
    async def test_delete_error_is_fatal(self, monkeypatch):
        import utils.submission_store as store

        class _BrokenSession:
            async def __aenter__(self):
                raise OperationalError("DELETE", {}, Exception("permission denied"))

            async def __aexit__(self, *exc):
                return False

        monkeypatch.setattr(store, "get_sessionmaker", lambda: _BrokenSession)

        with pytest.raises(SubmissionDeleteError, match="permission denied"):
            await delete_submissions([_uid(1)])


def test_day_start_utc():
    assert day_start_utc(CUTOFF) == datetime(2026, 10, 16, 0, 0, tzinfo=timezone.utc)
