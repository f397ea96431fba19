from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from chronicle.core.memories import AllocationOutcome, Experience, Memory, MemoryPool
from chronicle.core.position import START_POSITION, Position, VisitRecord


class ExperienceModel(BaseModel):
    text: str
    created_at: datetime


class MemoryModel(BaseModel):
    id: str
    title: str
    experiences: list[ExperienceModel] = Field(default_factory=list)

    # Moved to a diary: no new experiences, still uses one of the five slots.
    archived: bool = False
    diary: str | None = None

    # Struck out for good; frees its slot.
    retired: bool = False


class TraitKind(StrEnum):
    skills = "skills"
    resources = "resources"
    relationships = "relationships"
    marks = "marks"


class Trait(BaseModel):
    name: str
    checked: bool = False
    struck_out: bool = False


class VisitedPrompt(BaseModel):
    prompt_number: int
    letters: list[str] = Field(default_factory=list)


class CharacterCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

    # Optional first memory written during character creation.
    first_memory: str | None = Field(default=None, min_length=1, max_length=4000)

    skills: list[Trait] = Field(default_factory=list)
    resources: list[Trait] = Field(default_factory=list)
    relationships: list[Trait] = Field(default_factory=list)
    marks: list[Trait] = Field(default_factory=list)


class CharacterUpdateRequest(BaseModel):
    """Partial character sheet edit. Fields left out are not touched."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    skills: list[Trait] | None = None
    resources: list[Trait] | None = None
    relationships: list[Trait] | None = None
    marks: list[Trait] | None = None


class TraitRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class RollRequest(BaseModel):
    d10: int = Field(..., ge=1, le=10)
    d6: int = Field(..., ge=1, le=6)
    response: str = Field(..., min_length=1, max_length=4000)


class ExperienceRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=4000)


class ArchiveRequest(BaseModel):
    diary: str = Field(..., min_length=1, max_length=200)


class CharacterState(BaseModel):
    character_id: UUID
    name: str
    created_at: datetime
    last_updated_at: datetime

    current_prompt: int = START_POSITION.number
    current_letter: str = START_POSITION.letter
    visited_prompts: list[VisitedPrompt] = Field(default_factory=list)

    memories: list[MemoryModel] = Field(default_factory=list)

    skills: list[Trait] = Field(default_factory=list)
    resources: list[Trait] = Field(default_factory=list)
    relationships: list[Trait] = Field(default_factory=list)
    marks: list[Trait] = Field(default_factory=list)

    # Engine snapshots. These raise CorruptStateError on bad persisted data.

    def position(self) -> Position:
        return Position(number=self.current_prompt, letter=self.current_letter)

    def visit_record(self) -> VisitRecord:
        return VisitRecord.from_pairs((v.prompt_number, v.letters) for v in self.visited_prompts)

    def memory_pool(self) -> MemoryPool:
        return MemoryPool(
            memories=tuple(
                Memory(
                    memory_id=m.id,
                    title=m.title,
                    experiences=tuple(Experience(text=e.text, created_at=e.created_at) for e in m.experiences),
                    archived=m.archived,
                    retired=m.retired,
                    diary=m.diary,
                )
                for m in self.memories
            )
        )

    def apply_position(self, position: Position, history: VisitRecord) -> None:
        self.current_prompt = position.number
        self.current_letter = position.letter
        self.visited_prompts = [VisitedPrompt(prompt_number=n, letters=ls) for n, ls in history.as_pairs()]

    def apply_pool(self, pool: MemoryPool) -> None:
        self.memories = [
            MemoryModel(
                id=m.memory_id,
                title=m.title,
                experiences=[ExperienceModel(text=e.text, created_at=e.created_at) for e in m.experiences],
                archived=m.archived,
                diary=m.diary,
                retired=m.retired,
            )
            for m in pool.memories
        ]

    def traits(self, kind: TraitKind) -> list[Trait]:
        return getattr(self, kind.value)

    def set_traits(self, kind: TraitKind, traits: list[Trait]) -> None:
        setattr(self, kind.value, traits)


class CharacterListResponse(BaseModel):
    characters: list[CharacterState]


class PromptResponse(BaseModel):
    prompt_number: int
    prompt_letter: str
    content: str
    is_placeholder: bool = False


class DiceRoll(BaseModel):
    d10: int
    d6: int


class RollResponse(BaseModel):
    character: CharacterState

    dice: DiceRoll
    movement: int

    previous_prompt: int
    previous_letter: str
    next_prompt: int
    next_letter: str
    redirected: bool = False

    # Next prompt text; a placeholder string when the catalog has nothing at that position.
    prompt: PromptResponse
    placeholder_used: bool = False

    memory_outcome: AllocationOutcome
    memory_id: str | None = None

    journal_entry_id: str
