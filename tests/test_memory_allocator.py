from __future__ import annotations

import itertools
from datetime import UTC, datetime

import pytest

from chronicle.core.errors import CorruptStateError
from chronicle.core.memories import (
    MAX_ACTIVE_MEMORIES,
    MAX_EXPERIENCES,
    AllocationOutcome,
    Experience,
    Memory,
    MemoryPool,
    derive_title,
    record_response,
)
from chronicle.core.position import Position


FIXED_TS = datetime(2025, 1, 1, tzinfo=UTC)


def _fixed_now() -> datetime:
    return FIXED_TS


def _ids():
    counter = itertools.count(1)
    return lambda: f"m{next(counter)}"


def _memory(memory_id: str, n_experiences: int, **flags: bool) -> Memory:
    return Memory(
        memory_id=memory_id,
        title=f"Memory {memory_id}",
        experiences=tuple(Experience(text=f"{memory_id}-{i}", created_at=FIXED_TS) for i in range(n_experiences)),
        **flags,
    )


def test_five_responses_fill_one_memory_then_start_another() -> None:
    pool = MemoryPool()
    new_id = _ids()
    outcomes: list[AllocationOutcome] = []

    for i in range(5):
        res = record_response(f"I fed on a traveler ({i})", pool, now=_fixed_now, new_id=new_id)
        outcomes.append(res.outcome)
        pool = res.pool

    assert outcomes == [
        AllocationOutcome.created,
        AllocationOutcome.appended,
        AllocationOutcome.appended,
        AllocationOutcome.created,
        AllocationOutcome.appended,
    ]
    assert [len(m.experiences) for m in pool.memories] == [3, 2]
    assert [m.memory_id for m in pool.memories] == ["m1", "m2"]
    assert pool.memories[0].experiences[0].text == "I fed on a traveler (0)"


def test_fifteen_responses_fill_the_pool_and_sixteenth_is_refused() -> None:
    pool = MemoryPool()
    new_id = _ids()

    for k in range(1, 16):
        res = record_response(f"entry {k}", pool, now=_fixed_now, new_id=new_id)
        assert res.outcome != AllocationOutcome.capacity_exceeded
        pool = res.pool
        assert all(len(m.experiences) <= MAX_EXPERIENCES for m in pool.memories)
        assert len(pool) <= -(-k // MAX_EXPERIENCES)
        assert pool.active_count <= MAX_ACTIVE_MEMORIES

    assert len(pool) == MAX_ACTIVE_MEMORIES

    res = record_response("one too many", pool, now=_fixed_now, new_id=new_id)
    assert res.outcome == AllocationOutcome.capacity_exceeded
    assert res.memory_id is None
    assert res.pool is pool
    assert res.changed is False

    # Same inputs, same answer until the pool changes.
    assert record_response("one too many", pool).outcome == AllocationOutcome.capacity_exceeded


def test_archived_memory_is_skipped_but_still_uses_a_slot() -> None:
    pool = MemoryPool(
        memories=(
            _memory("a", 1, archived=True),
            _memory("b", 3),
            _memory("c", 3),
            _memory("d", 3),
            _memory("e", 3),
        )
    )

    res = record_response("text", pool)

    assert res.outcome == AllocationOutcome.capacity_exceeded
    assert len(res.pool.memories[0].experiences) == 1


def test_retired_memory_frees_a_slot() -> None:
    pool = MemoryPool(
        memories=(
            _memory("a", 3, retired=True),
            _memory("b", 3),
            _memory("c", 3),
            _memory("d", 3),
            _memory("e", 3),
        )
    )

    res = record_response("text", pool, new_id=lambda: "f", now=_fixed_now)

    assert res.outcome == AllocationOutcome.created
    assert res.memory_id == "f"
    assert [m.memory_id for m in res.pool.memories] == ["a", "b", "c", "d", "e", "f"]
    assert res.pool.active_count == MAX_ACTIVE_MEMORIES


def test_retired_memory_with_room_is_never_appended_to() -> None:
    pool = MemoryPool(memories=(_memory("a", 1, retired=True), _memory("b", 2)))

    res = record_response("text", pool)

    assert res.outcome == AllocationOutcome.appended
    assert res.memory_id == "b"
    assert res.pool.get("a") == pool.get("a")


def test_first_open_memory_in_pool_order_wins() -> None:
    pool = MemoryPool(memories=(_memory("a", 3), _memory("b", 1), _memory("c", 0)))

    res = record_response("text", pool, now=_fixed_now)

    assert res.memory_id == "b"
    assert res.pool.get("b").experiences[-1] == Experience(text="text", created_at=FIXED_TS)
    # Input pool is untouched.
    assert len(pool.get("b").experiences) == 1


def test_created_memory_uses_given_title() -> None:
    res = record_response("text", MemoryPool(), title="Prompt 3a: You find a letter...")
    assert res.pool.memories[0].title == "Prompt 3a: You find a letter..."


def test_derive_title() -> None:
    pool = MemoryPool(memories=(_memory("a", 3),))

    assert derive_title(prompt=None, content=None, pool=pool) == "Memory 2"
    assert derive_title(prompt=Position(3, "b"), content=None, pool=pool) == "Response to Prompt 3b"
    assert (
        derive_title(prompt=Position(1, "a"), content="Your hunger outlasts your patience. Someone close", pool=pool)
        == "Prompt 1a: Your hunger outlasts your pati..."
    )


def test_over_capacity_pool_is_corrupt() -> None:
    with pytest.raises(CorruptStateError):
        MemoryPool(memories=tuple(_memory(str(i), 1) for i in range(MAX_ACTIVE_MEMORIES + 1)))


def test_overfull_memory_is_corrupt() -> None:
    with pytest.raises(CorruptStateError):
        _memory("a", MAX_EXPERIENCES + 1)


def test_duplicate_memory_ids_are_corrupt() -> None:
    with pytest.raises(CorruptStateError):
        MemoryPool(memories=(_memory("a", 1), _memory("a", 2)))
