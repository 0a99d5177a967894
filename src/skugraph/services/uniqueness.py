# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Turns a candidate code into a value nobody else holds.

Collisions resolve deterministically: ``BASE``, ``BASE-01``, ``BASE-02``, ...
(two digits, widening naturally past 99). The only race-free step is the
caller-supplied atomic ``claim``; this module is a retry loop around it.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator

from skugraph.errors import ExhaustedRetriesError, StorageConflictError

logger = logging.getLogger(__name__)


def candidates(base: str) -> Iterator[str]:
    """Yield the base code followed by its suffixed variants."""
    yield base
    counter = 1
    while True:
        yield f"{base}-{counter:02d}"
        counter += 1


class UniquenessEnforcer:
    def __init__(self, max_attempts: int = 1000) -> None:
        self.max_attempts = max_attempts

    async def reserve[T](self, candidate: str, claim: Callable[[str], Awaitable[T]]) -> T:
        """Claim the first free variant of ``candidate``.

        ``claim`` must write the value atomically and raise StorageConflictError
        if it is already held. Whatever ``claim`` returns for the winning
        value is returned here.
        """
        for attempt, value in enumerate(candidates(candidate), start=1):
            if attempt > self.max_attempts:
                break
            try:
                return await claim(value)
            except StorageConflictError:
                logger.debug("Code %s taken, trying next suffix", value)
        logger.error(
            "Exhausted %d attempts reserving a code for %s", self.max_attempts, candidate
        )
        raise ExhaustedRetriesError(candidate, self.max_attempts)

    async def probe(self, candidate: str, is_taken: Callable[[str], Awaitable[bool]]) -> str:
        """Return the value ``reserve`` would currently land on, without claiming it."""
        for attempt, value in enumerate(candidates(candidate), start=1):
            if attempt > self.max_attempts:
                break
            if not await is_taken(value):
                return value
        raise ExhaustedRetriesError(candidate, self.max_attempts)
