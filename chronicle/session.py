from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import redis

from chronicle.api.models import CharacterState, CharacterUpdateRequest, Trait, TraitKind
from chronicle.catalog.registry import PromptCatalog, ResolvedPrompt
from chronicle.character_store import require_character, save_character
from chronicle.core.memories import (
    AllocationOutcome,
    add_experience,
    archive_memory,
    create_memory,
    derive_title,
    record_response,
    retire_memory,
)
from chronicle.core.navigator import advance
from chronicle.core.position import Position, Roll
from chronicle.lock import character_lock
from chronicle.streams import Journal, append_journal_entry
from chronicle.traits import add_trait, check_trait, strike_trait


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RollResult:
    state: CharacterState
    roll: Roll
    previous_position: Position
    next_position: Position
    redirected: bool
    placeholder_used: bool
    prompt: ResolvedPrompt
    memory_outcome: AllocationOutcome
    memory_id: str | None
    journal_entry_id: str


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def submit_roll(
    *,
    r: redis.Redis,
    catalog: PromptCatalog,
    character_id: UUID,
    d10: int,
    d6: int,
    response: str,
) -> RollResult:
    """Process one roll event for a character.

    - lock the character
    - navigate to the next prompt and record the visit
    - place the response into the memory pool
    - persist and append the answered prompt to the character's journal

    A full memory pool does not block progression: the position still advances and
    the outcome reports `capacity_exceeded` so the player can free a slot.
    """

    cid = str(character_id)

    with character_lock(r=r, character_id=cid):
        state = require_character(r=r, character_id=character_id)

        current = state.position()
        history = state.visit_record()
        pool = state.memory_pool()
        roll = Roll(d10=d10, d6=d6)

        nav = advance(current=current, roll=roll, history=history, prompts=catalog)
        if nav.redirected:
            logger.info("Character %s: letters exhausted at %s, redirected to %s", cid, current, nav.position)
        logger.info("Character %s: moved from %s by %d to %s", cid, current, nav.movement, nav.position)

        title = derive_title(prompt=current, content=catalog.content(current.number, current.letter), pool=pool)
        allocation = record_response(response, pool, title=title)
        if allocation.outcome == AllocationOutcome.capacity_exceeded:
            logger.info("Character %s: memory pool full, response not placed", cid)
        else:
            logger.info("Character %s: response %s memory %s", cid, allocation.outcome.value, allocation.memory_id)

        state.apply_position(nav.position, nav.history)
        if allocation.changed:
            state.apply_pool(allocation.pool)
        save_character(r=r, state=state)

        entry_id = append_journal_entry(
            r=r,
            journal=Journal(character_id=cid),
            fields={
                "prompt_number": str(current.number),
                "prompt_letter": current.letter,
                "d10": str(roll.d10),
                "d6": str(roll.d6),
                "movement": str(nav.movement),
                "response": response,
                "next_prompt_number": str(nav.position.number),
                "next_prompt_letter": nav.position.letter,
                "memory_outcome": allocation.outcome.value,
                "ts": _now_iso(),
            },
        )

        prompt = catalog.resolve(nav.position.number, nav.position.letter)

        return RollResult(
            state=state,
            roll=roll,
            previous_position=current,
            next_position=nav.position,
            redirected=nav.redirected,
            placeholder_used=nav.placeholder_used,
            prompt=prompt,
            memory_outcome=allocation.outcome,
            memory_id=allocation.memory_id,
            journal_entry_id=entry_id,
        )


def add_memory_experience(*, r: redis.Redis, character_id: UUID, memory_id: str, text: str) -> CharacterState:
    with character_lock(r=r, character_id=str(character_id)):
        state = require_character(r=r, character_id=character_id)
        state.apply_pool(add_experience(state.memory_pool(), memory_id, text))
        save_character(r=r, state=state)
        return state


def archive_character_memory(*, r: redis.Redis, character_id: UUID, memory_id: str, diary: str) -> CharacterState:
    """Move a memory into a named diary. The diary also shows up as a resource."""

    diary_name = diary.strip()
    if not diary_name:
        raise ValueError("Diary name is required")

    with character_lock(r=r, character_id=str(character_id)):
        state = require_character(r=r, character_id=character_id)
        state.apply_pool(archive_memory(state.memory_pool(), memory_id, diary=diary_name))
        resource = f"Diary: {diary_name}"
        if all(t.name != resource for t in state.resources):
            state.resources = [*state.resources, Trait(name=resource)]
        save_character(r=r, state=state)
        logger.info("Character %s: memory %s archived into diary %r", character_id, memory_id, diary_name)
        return state


def retire_character_memory(*, r: redis.Redis, character_id: UUID, memory_id: str) -> CharacterState:
    with character_lock(r=r, character_id=str(character_id)):
        state = require_character(r=r, character_id=character_id)
        state.apply_pool(retire_memory(state.memory_pool(), memory_id))
        save_character(r=r, state=state)
        logger.info("Character %s: memory %s retired", character_id, memory_id)
        return state


def create_character_memory(*, r: redis.Redis, character_id: UUID, text: str) -> CharacterState:
    """Start a new memory the player asked for, rather than filling an open one."""

    with character_lock(r=r, character_id=str(character_id)):
        state = require_character(r=r, character_id=character_id)
        created = create_memory(state.memory_pool(), text)
        state.apply_pool(created.pool)
        save_character(r=r, state=state)
        logger.info("Character %s: memory %s created", character_id, created.memory_id)
        return state


def update_character(*, r: redis.Redis, character_id: UUID, update: CharacterUpdateRequest) -> CharacterState:
    """Apply a character sheet edit. Only fields present in the request change."""

    changes = update.model_dump(exclude_unset=True)
    if "name" in changes:
        if changes["name"] is None or not changes["name"].strip():
            raise ValueError("Name is required")
        changes["name"] = changes["name"].strip()

    with character_lock(r=r, character_id=str(character_id)):
        state = require_character(r=r, character_id=character_id)
        if "name" in changes:
            state.name = changes["name"]
        for kind in TraitKind:
            traits = getattr(update, kind.value)
            if traits is not None:
                state.set_traits(kind, list(traits))
        save_character(r=r, state=state)
        logger.info("Character %s: sheet updated (%s)", character_id, ", ".join(sorted(changes)) or "no changes")
        return state


def change_character_trait(
    *,
    r: redis.Redis,
    character_id: UUID,
    kind: TraitKind,
    name: str,
    action: str,
) -> CharacterState:
    """Add, check or strike out one trait on the character sheet."""

    with character_lock(r=r, character_id=str(character_id)):
        state = require_character(r=r, character_id=character_id)
        traits = state.traits(kind)
        if action == "add":
            updated = add_trait(traits, name)
        elif action == "check":
            updated = check_trait(traits, name, kind=kind)
        elif action == "strike":
            updated = strike_trait(traits, name)
        else:
            raise ValueError(f"Unknown trait action: {action}")
        state.set_traits(kind, updated)
        save_character(r=r, state=state)
        logger.info("Character %s: %s %s %r", character_id, action, kind.value, name)
        return state
