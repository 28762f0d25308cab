# core/cleanup.py
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Awaitable, Callable

import config
from core.batch_deleter import BatchDeleter
from core.entitlements import EntitlementCache, EntitlementResolver
from core.errors import PaginationError
from utils import prom
from utils.submission_store import SubmissionRow, fetch_expired_batch

log = logging.getLogger("cleanup")

FetchBatch = Callable[..., Awaitable[list[SubmissionRow]]]


class RunState(str, enum.Enum):
    RUNNING = "running"
    DONE = "done"


@dataclass
class CleanupTotals:
    rows_deleted: int = 0
    objects_deleted: int = 0
    batches: int = 0
    exempt_rows: int = 0
    state: RunState = RunState.RUNNING
    cursor: str | None = None


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


async def run_cleanup(
    *,
    cutoff_date: date | None = None,
    batch_size: int | None = None,
    fetch_batch: FetchBatch = fetch_expired_batch,
    resolver: EntitlementResolver | None = None,
    deleter: BatchDeleter | None = None,
) -> CleanupTotals:
    """Delete expired, non-premium submissions page by page until none remain.

    Pages are handled one at a time; any error propagates and aborts the run
    with whatever was already deleted left deleted.
    """
    cutoff = cutoff_date or utc_today()
    size = int(batch_size or config.CLEANUP_BATCH_SIZE)
    if resolver is None:
        resolver = deleter.resolver if deleter is not None else EntitlementResolver(EntitlementCache())
    if deleter is None:
        deleter = BatchDeleter(resolver)

    totals = CleanupTotals()
    log.info("Starting cleanup. UTC cutoff date: %s", cutoff.isoformat())

    while totals.state is RunState.RUNNING:
        batch = await fetch_batch(cutoff_date=cutoff, after_id=totals.cursor, limit=size)
        if not batch:
            totals.state = RunState.DONE
            break

        last_id = batch[-1].id
        if last_id == totals.cursor:
            raise PaginationError(f"Cursor did not advance past {last_id}")
        totals.cursor = last_id
        totals.batches += 1

        lookups_before = resolver.lookups
        await resolver.resolve(row.user_id for row in batch)
        prom.premium_lookups_total.inc(resolver.lookups - lookups_before)

        outcome = await deleter.process(batch, batch_number=totals.batches)

        totals.rows_deleted += outcome.rows_deleted
        totals.objects_deleted += outcome.objects_deleted
        totals.exempt_rows += outcome.exempt_rows
        prom.rows_deleted_total.inc(outcome.rows_deleted)
        prom.objects_deleted_total.inc(outcome.objects_deleted)
        prom.batches_total.labels(result="deleted" if outcome.rows_deleted else "skipped").inc()

    log.info(
        "Cleanup finished. Deleted %s submissions and %s files (%s batches, %s premium submissions kept).",
        totals.rows_deleted, totals.objects_deleted, totals.batches, totals.exempt_rows,
    )
    return totals
