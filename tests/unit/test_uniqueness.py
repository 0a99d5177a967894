# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

import asyncio
import itertools
from datetime import date

import pytest

from skugraph.errors import ExhaustedRetriesError, StorageConflictError
from skugraph.services.uniqueness import UniquenessEnforcer, candidates
from skugraph.stores import SequenceScope
from skugraph.stores.memory import InMemorySequenceCounter


class TakenSet:
    """Atomic claim over a set of held values."""

    def __init__(self, *held: str) -> None:
        self.held = set(held)
        self.lock = asyncio.Lock()

    async def claim(self, value: str) -> str:
        async with self.lock:
            if value in self.held:
                raise StorageConflictError(f"{value} taken", value=value)
            self.held.add(value)
        return value

    async def is_taken(self, value: str) -> bool:
        return value in self.held


class TestCandidates:
    def test_base_then_two_digit_suffixes(self) -> None:
        assert list(itertools.islice(candidates("ABC"), 4)) == [
            "ABC",
            "ABC-01",
            "ABC-02",
            "ABC-03",
        ]

    def test_suffix_widens_past_99(self) -> None:
        assert list(itertools.islice(candidates("X"), 101))[-1] == "X-100"


class TestReserve:
    async def test_free_base_is_claimed_as_is(self) -> None:
        store = TakenSet()
        assert await UniquenessEnforcer().reserve("ABC", store.claim) == "ABC"

    async def test_first_free_suffix_wins(self) -> None:
        store = TakenSet("ABC", "ABC-01")
        assert await UniquenessEnforcer().reserve("ABC", store.claim) == "ABC-02"

    async def test_returns_what_claim_returns(self) -> None:
        async def claim(value: str) -> dict[str, str]:
            return {"value": value}

        assert await UniquenessEnforcer().reserve("ABC", claim) == {"value": "ABC"}

    async def test_exhausted(self) -> None:
        store = TakenSet("ABC", "ABC-01", "ABC-02")
        with pytest.raises(ExhaustedRetriesError) as exc_info:
            await UniquenessEnforcer(max_attempts=3).reserve("ABC", store.claim)
        assert exc_info.value.attempts == 3

    async def test_other_errors_propagate(self) -> None:
        async def claim(value: str) -> str:
            raise RuntimeError("database down")

        with pytest.raises(RuntimeError):
            await UniquenessEnforcer().reserve("ABC", claim)

    async def test_concurrent_reservations_never_share_a_value(self) -> None:
        store = TakenSet()
        enforcer = UniquenessEnforcer()
        values = await asyncio.gather(*(enforcer.reserve("DUP", store.claim) for _ in range(50)))
        assert len(set(values)) == 50


class TestProbe:
    async def test_probe_does_not_claim(self) -> None:
        store = TakenSet("ABC")
        enforcer = UniquenessEnforcer()
        assert await enforcer.probe("ABC", store.is_taken) == "ABC-01"
        assert await enforcer.probe("ABC", store.is_taken) == "ABC-01"
        assert store.held == {"ABC"}

    async def test_probe_matches_reserve(self) -> None:
        store = TakenSet("ABC", "ABC-01")
        enforcer = UniquenessEnforcer()
        probed = await enforcer.probe("ABC", store.is_taken)
        assert await enforcer.reserve("ABC", store.claim) == probed

    async def test_probe_exhausted(self) -> None:
        store = TakenSet("ABC")
        with pytest.raises(ExhaustedRetriesError):
            await UniquenessEnforcer(max_attempts=1).probe("ABC", store.is_taken)


class TestSequenceScope:
    def test_kind_scope_key(self) -> None:
        assert SequenceScope.for_kind("Product", "t1").key == "t1:Product"

    def test_daily_and_partitioned_key(self) -> None:
        scope = SequenceScope.for_kind(
            "WorkOrder", "t1", day=date(2024, 12, 1), parts=("CAF",)
        )
        assert scope.key == "t1:WorkOrder:@2024-12-01:CAF"

    def test_global_key(self) -> None:
        assert SequenceScope.global_scope().key == "*"
        assert SequenceScope.global_scope(("A", "B")).key == "*:A:B"

    def test_separator_in_tenant_does_not_collide(self) -> None:
        left = SequenceScope.for_kind("B", "t1:A")
        right = SequenceScope.for_kind("A:B", "t1")
        assert left.key == "t1%3AA:B"
        assert left != right

    def test_partition_shaped_like_a_date_does_not_collide(self) -> None:
        daily = SequenceScope.for_kind("WorkOrder", "t1", day=date(2024, 12, 1))
        plain = SequenceScope.for_kind("WorkOrder", "t1", parts=("2024-12-01",))
        tagged = SequenceScope.for_kind("WorkOrder", "t1", parts=("@2024-12-01",))
        assert daily not in (plain, tagged)

    def test_tenant_named_like_the_global_root(self) -> None:
        assert SequenceScope.for_kind("A", "*") != SequenceScope.global_scope(("A",))


class TestInMemorySequenceCounter:
    async def test_monotonic_per_scope(self) -> None:
        counter = InMemorySequenceCounter()
        a = SequenceScope("a")
        b = SequenceScope("b")
        assert [await counter.next(a) for _ in range(3)] == [1, 2, 3]
        assert await counter.next(b) == 1

    async def test_peek_does_not_consume(self) -> None:
        counter = InMemorySequenceCounter()
        scope = SequenceScope("a")
        assert await counter.peek(scope) == 1
        assert await counter.peek(scope) == 1
        assert await counter.next(scope) == 1
        assert await counter.peek(scope) == 2

    async def test_concurrent_next_is_distinct(self) -> None:
        counter = InMemorySequenceCounter()
        scope = SequenceScope("a")
        values = await asyncio.gather(*(counter.next(scope) for _ in range(100)))
        assert sorted(values) == list(range(1, 101))
