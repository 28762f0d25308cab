# core/batch_deleter.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence

from core.entitlements import EntitlementResolver
from utils.object_store import delete_objects, unique_keys
from utils.submission_store import SubmissionRow, delete_submissions

log = logging.getLogger("cleanup.batch")


@dataclass(frozen=True)
class BatchOutcome:
    rows_deleted: int = 0
    objects_deleted: int = 0
    exempt_rows: int = 0


class BatchDeleter:
    """Deletes the non-premium rows of one page: objects first, then rows.

    Row deletion only starts once the object delete reported no failures, so a
    row never disappears while its original might still be in the bucket.
    """

    def __init__(
        self,
        resolver: EntitlementResolver,
        *,
        delete_objects: Callable[[Iterable[str | None]], Awaitable[int]] = delete_objects,
        delete_rows: Callable[[Sequence[str]], Awaitable[int]] = delete_submissions,
    ) -> None:
        self.resolver = resolver
        self._delete_objects = delete_objects
        self._delete_rows = delete_rows

    async def process(self, page: Sequence[SubmissionRow], *, batch_number: int = 0) -> BatchOutcome:
        removable = [row for row in page if not self.resolver.is_exempt(row.user_id)]
        exempt = len(page) - len(removable)

        if not removable:
            log.info("Batch %s: no deletable submissions (all premium users).", batch_number)
            return BatchOutcome(exempt_rows=exempt)

        keys = unique_keys(row.original_key for row in removable)
        log.info(
            "Batch %s: attempting to delete %s submissions and %s files.",
            batch_number, len(removable), len(keys),
        )

        objects_deleted = await self._delete_objects(keys)
        rows_deleted = await self._delete_rows([row.id for row in removable])

        log.info(
            "Batch %s: deleted %s submissions and %s files.",
            batch_number, rows_deleted, objects_deleted,
        )
        return BatchOutcome(rows_deleted=rows_deleted, objects_deleted=objects_deleted, exempt_rows=exempt)
