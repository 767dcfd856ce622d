"""Resolve ids of a dense 1-based sequence from an over-estimate.

Ids are decimal strings starting at "1"; "0" is the sentinel for "no entity".
Both searches step downward from the estimate one id at a time, so their cost
grows with how far the estimate overshoots the last stored id.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger("periodic_rollups.period_data.incremental_ids")

NONE_ID = "0"
FIRST_ID = "1"

ExistsFn = Callable[[str, str], bool]


class IncrementalIdSearchError(RuntimeError):
    pass


class IncrementalIdResolver:
    def __init__(self, exists: ExistsFn, *, max_lookups: int | None = None) -> None:
        if max_lookups is not None and max_lookups <= 0:
            raise ValueError("max_lookups must be positive when set")
        self._exists = exists
        self.max_lookups = max_lookups

    def last_existing(self, kind: str, estimate: int) -> str:
        found = self._search(kind, estimate)
        return NONE_ID if found == 0 else str(found)

    def next_free(self, kind: str, estimate: int) -> str:
        return str(self._search(kind, estimate) + 1)

    def _search(self, kind: str, estimate: int) -> int:
        candidate = int(estimate)
        if candidate < 0:
            raise ValueError(f"estimate must be non-negative, got {estimate}")
        lookups = 0
        while candidate > 0:
            if self.max_lookups is not None and lookups >= self.max_lookups:
                raise IncrementalIdSearchError(
                    f"{kind}: no stored id found within {self.max_lookups} lookups below {estimate}"
                )
            lookups += 1
            if self._exists(kind, str(candidate)):
                logger.debug("%s: resolved id=%s from estimate=%s lookups=%s", kind, candidate, estimate, lookups)
                return candidate
            candidate -= 1
        logger.debug("%s: no stored id at or below estimate=%s lookups=%s", kind, estimate, lookups)
        return 0
