# core/entitlements.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Iterator

import config
from core.errors import EntitlementError, UnknownParameterError
from utils.premium import user_is_premium

log = logging.getLogger("cleanup.entitlements")

PremiumCheck = Callable[..., Awaitable[bool]]


class EntitlementCache:
    """Owner id -> exempt flag for one cleanup run.

    Only grows; build a fresh one per run and drop it when the run ends.
    """

    def __init__(self) -> None:
        self._exempt: dict[str, bool] = {}

    def __contains__(self, owner_id: object) -> bool:
        return owner_id in self._exempt

    def __len__(self) -> int:
        return len(self._exempt)

    def __iter__(self) -> Iterator[str]:
        return iter(self._exempt)

    def get(self, owner_id: str) -> bool | None:
        return self._exempt.get(owner_id)

    def set(self, owner_id: str, exempt: bool) -> None:
        if owner_id in self._exempt and self._exempt[owner_id] != exempt:
            raise EntitlementError(f"Conflicting entitlement results for user {owner_id}")
        self._exempt[owner_id] = exempt

    def missing(self, owner_ids: Iterable[str]) -> list[str]:
        """Distinct ids not cached yet, in first-seen order."""
        seen: set[str] = set()
        out: list[str] = []
        for oid in owner_ids:
            if oid in seen or oid in self._exempt:
                continue
            seen.add(oid)
            out.append(oid)
        return out


class EntitlementResolver:
    """Resolves which owners are premium, at most once per owner per run.

    Lookups for a page go out in groups of ``chunk_size`` concurrent calls.
    If the premium function rejects the canonical argument name, each lookup
    retries once with the legacy name; after the first legacy success the
    legacy name is used directly.
    """

    def __init__(
        self,
        cache: EntitlementCache,
        *,
        check: PremiumCheck = user_is_premium,
        chunk_size: int | None = None,
        param_name: str | None = None,
        legacy_param_name: str | None = None,
    ) -> None:
        self.cache = cache
        self._check = check
        self.chunk_size = max(1, int(chunk_size or config.PREMIUM_CHECK_CHUNK_SIZE))
        self.param_name = param_name or config.PREMIUM_PARAM
        self.legacy_param_name = legacy_param_name or config.PREMIUM_LEGACY_PARAM
        self._use_legacy = False
        self._legacy_warned = False
        self.lookups = 0

    async def resolve(self, owner_ids: Iterable[str]) -> None:
        missing = self.cache.missing(owner_ids)
        if not missing:
            return
        for i in range(0, len(missing), self.chunk_size):
            chunk = missing[i : i + self.chunk_size]
            tasks = [asyncio.create_task(self._lookup(oid)) for oid in chunk]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                # One failed lookup aborts the run; siblings must not keep querying.
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

    def is_exempt(self, owner_id: str) -> bool:
        exempt = self.cache.get(owner_id)
        if exempt is None:
            raise EntitlementError(f"Entitlement for user {owner_id} was never resolved")
        return exempt

    async def _lookup(self, owner_id: str) -> None:
        self.lookups += 1
        if self._use_legacy:
            exempt = await self._check(owner_id, param_name=self.legacy_param_name)
        else:
            try:
                exempt = await self._check(owner_id, param_name=self.param_name)
            except UnknownParameterError as e:
                if self.legacy_param_name == self.param_name:
                    raise
                self._warn_legacy(e)
                exempt = await self._check(owner_id, param_name=self.legacy_param_name)
                self._use_legacy = True

        if not isinstance(exempt, bool):
            raise EntitlementError(f"Premium check returned non-boolean for user {owner_id}: {exempt!r}")
        self.cache.set(owner_id, exempt)

    def _warn_legacy(self, err: UnknownParameterError) -> None:
        if self._legacy_warned:
            return
        self._legacy_warned = True
        log.warning(
            "Premium function rejected parameter %r; retrying with legacy parameter %r (%s)",
            err.param_name,
            self.legacy_param_name,
            err,
        )
