from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from chronicle.core.errors import CorruptStateError
from chronicle.core.position import Position
from chronicle.fsm import apply_lifecycle_event

MAX_EXPERIENCES = 3
MAX_ACTIVE_MEMORIES = 5
TITLE_SNIPPET_CHARS = 30


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _new_memory_id() -> str:
    return uuid4().hex


@dataclass(frozen=True, slots=True)
class Experience:
    text: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Memory:
    memory_id: str
    title: str
    experiences: tuple[Experience, ...] = ()
    archived: bool = False
    retired: bool = False

    # Name of the diary an archived memory was moved into.
    diary: str | None = None

    def __post_init__(self) -> None:
        if len(self.experiences) > MAX_EXPERIENCES:
            raise CorruptStateError(
                f"Memory {self.memory_id} holds {len(self.experiences)} experiences (max {MAX_EXPERIENCES})"
            )

    @property
    def is_open(self) -> bool:
        return not self.archived and not self.retired and len(self.experiences) < MAX_EXPERIENCES

    def with_experience(self, experience: Experience) -> "Memory":
        if not self.is_open:
            raise ValueError(f"Memory {self.memory_id} cannot take another experience")
        return replace(self, experiences=(*self.experiences, experience))


@dataclass(frozen=True, slots=True)
class MemoryPool:
    memories: tuple[Memory, ...] = ()

    def __post_init__(self) -> None:
        ids = [m.memory_id for m in self.memories]
        if len(set(ids)) != len(ids):
            raise CorruptStateError("Memory pool contains duplicate memory ids")
        if self.active_count > MAX_ACTIVE_MEMORIES:
            raise CorruptStateError(
                f"Memory pool holds {self.active_count} non-retired memories (max {MAX_ACTIVE_MEMORIES})"
            )

    @property
    def active_count(self) -> int:
        return sum(1 for m in self.memories if not m.retired)

    @property
    def has_free_slot(self) -> bool:
        return self.active_count < MAX_ACTIVE_MEMORIES

    def first_open_index(self) -> int | None:
        return next((i for i, m in enumerate(self.memories) if m.is_open), None)

    def index_of(self, memory_id: str) -> int:
        for idx, m in enumerate(self.memories):
            if m.memory_id == memory_id:
                return idx
        raise ValueError("Memory not found")

    def get(self, memory_id: str) -> Memory:
        return self.memories[self.index_of(memory_id)]

    def replaced(self, idx: int, memory: Memory) -> "MemoryPool":
        memories = list(self.memories)
        memories[idx] = memory
        return MemoryPool(memories=tuple(memories))

    def appended(self, memory: Memory) -> "MemoryPool":
        return MemoryPool(memories=(*self.memories, memory))

    def __len__(self) -> int:
        return len(self.memories)


class AllocationOutcome(StrEnum):
    appended = "appended"
    created = "created"
    capacity_exceeded = "capacity_exceeded"


@dataclass(frozen=True, slots=True)
class AllocationResult:
    pool: MemoryPool
    outcome: AllocationOutcome
    memory_id: str | None = None

    @property
    def changed(self) -> bool:
        return self.outcome != AllocationOutcome.capacity_exceeded


def derive_title(*, prompt: Position | None, content: str | None, pool: MemoryPool) -> str:
    """Title for a memory created from a response.

    Named after the prompt that was answered, with a short snippet of its text when known.
    """

    if prompt is None:
        return f"Memory {len(pool) + 1}"
    if content:
        return f"Prompt {prompt.label}: {content[:TITLE_SNIPPET_CHARS]}..."
    return f"Response to Prompt {prompt.label}"


def record_response(
    text: str,
    pool: MemoryPool,
    *,
    title: str | None = None,
    now: Callable[[], datetime] = _now,
    new_id: Callable[[], str] = _new_memory_id,
) -> AllocationResult:
    """Place a response into the pool.

    Fills the first open memory; otherwise starts a new one while a slot is free.
    A full pool is returned untouched with `capacity_exceeded`; nothing is evicted.
    """

    idx = pool.first_open_index()
    if idx is not None:
        target = pool.memories[idx]
        updated = target.with_experience(Experience(text=text, created_at=now()))
        return AllocationResult(pool=pool.replaced(idx, updated), outcome=AllocationOutcome.appended, memory_id=target.memory_id)

    if not pool.has_free_slot:
        return AllocationResult(pool=pool, outcome=AllocationOutcome.capacity_exceeded)

    memory = Memory(
        memory_id=new_id(),
        title=title or derive_title(prompt=None, content=None, pool=pool),
        experiences=(Experience(text=text, created_at=now()),),
    )
    return AllocationResult(pool=pool.appended(memory), outcome=AllocationOutcome.created, memory_id=memory.memory_id)


def create_memory(
    pool: MemoryPool,
    text: str,
    *,
    now: Callable[[], datetime] = _now,
    new_id: Callable[[], str] = _new_memory_id,
) -> AllocationResult:
    """Start a new memory on request, even when an open one exists.

    Unlike `record_response`, a full pool is an error here.
    """

    if not text.strip():
        raise ValueError("Experience text is required")
    if not pool.has_free_slot:
        raise ValueError(f"Memory limit reached ({MAX_ACTIVE_MEMORIES}); retire a memory first")

    memory = Memory(
        memory_id=new_id(),
        title=derive_title(prompt=None, content=None, pool=pool),
        experiences=(Experience(text=text, created_at=now()),),
    )
    return AllocationResult(pool=pool.appended(memory), outcome=AllocationOutcome.created, memory_id=memory.memory_id)


def archive(memory: Memory, *, diary: str | None = None) -> Memory:
    """Move a memory to long-term storage. It stops receiving experiences but keeps its slot."""

    apply_lifecycle_event(archived=memory.archived, retired=memory.retired, event="archive")
    return replace(memory, archived=True, diary=diary if diary is not None else memory.diary)


def retire(memory: Memory) -> Memory:
    """Strike a memory out for good, freeing its slot. Its experiences are frozen from here on."""

    apply_lifecycle_event(archived=memory.archived, retired=memory.retired, event="retire")
    return replace(memory, retired=True)


def add_experience(pool: MemoryPool, memory_id: str, text: str, *, now: Callable[[], datetime] = _now) -> MemoryPool:
    """Append to a memory chosen by the player rather than the first open one."""

    idx = pool.index_of(memory_id)
    updated = pool.memories[idx].with_experience(Experience(text=text, created_at=now()))
    return pool.replaced(idx, updated)


def archive_memory(pool: MemoryPool, memory_id: str, *, diary: str | None = None) -> MemoryPool:
    idx = pool.index_of(memory_id)
    return pool.replaced(idx, archive(pool.memories[idx], diary=diary))


def retire_memory(pool: MemoryPool, memory_id: str) -> MemoryPool:
    idx = pool.index_of(memory_id)
    return pool.replaced(idx, retire(pool.memories[idx]))
