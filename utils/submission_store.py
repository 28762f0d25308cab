# utils/submission_store.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from core.errors import SubmissionDeleteError, SubmissionFetchError
from utils.db import get_sessionmaker
from utils.models import DailyPrompt, Submission

log = logging.getLogger("submission_store")

DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class SubmissionRow:
    id: str
    user_id: str
    original_key: str | None
    prompt_date: datetime | None = None


def day_start_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


async def fetch_expired_batch(
    *,
    cutoff_date: date,
    after_id: str | None = None,
    limit: int = DEFAULT_BATCH_SIZE,
) -> list[SubmissionRow]:
    """Next page of submissions whose prompt day is before ``cutoff_date``.

    The inner join drops submissions whose prompt row is missing. Rows come back
    ordered by id, strictly after ``after_id`` when given.
    """
    stmt = (
        select(
            Submission.id,
            Submission.user_id,
            Submission.original_key,
            DailyPrompt.prompt_date,
        )
        .join(DailyPrompt, Submission.daily_prompt_id == DailyPrompt.id)
        .where(DailyPrompt.prompt_date < day_start_utc(cutoff_date))
        .order_by(Submission.id.asc())
        .limit(int(limit))
    )
    if after_id is not None:
        stmt = stmt.where(Submission.id > after_id)

    try:
        Session = get_sessionmaker()
        async with Session() as session:
            res = await session.execute(stmt)
            rows = res.all()
    except SQLAlchemyError as e:
        raise SubmissionFetchError(f"Failed to fetch submissions batch: {e}") from e

    return [
        SubmissionRow(id=r[0], user_id=r[1], original_key=r[2], prompt_date=r[3])
        for r in rows
    ]


async def delete_submissions(ids: Sequence[str]) -> int:
    """Delete submission rows by id in a single statement. Returns len(ids)."""
    id_list = list(ids)
    if not id_list:
        return 0

    try:
        Session = get_sessionmaker()
        async with Session() as session:
            await session.execute(
                delete(Submission)
                .where(Submission.id.in_(id_list))
                .execution_options(synchronize_session=False)
            )
            await session.commit()
    except SQLAlchemyError as e:
        raise SubmissionDeleteError(
            f"Failed to delete submissions {', '.join(id_list)}: {e}"
        ) from e

    return len(id_list)
