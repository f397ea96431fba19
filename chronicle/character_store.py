from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

import redis

from chronicle.api.models import CharacterCreateRequest, CharacterState
from chronicle.core.memories import MemoryPool, record_response
from chronicle.streams import Journal, delete_journal


logger = logging.getLogger(__name__)

CHARACTERS_SET_KEY = "chronicle:characters"
CHARACTER_KEY_PREFIX = "chronicle:character:"  # + {uuid}


class CharacterNotFoundError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _character_key(character_id: UUID) -> str:
    return f"{CHARACTER_KEY_PREFIX}{character_id}"


def save_character(*, r: redis.Redis, state: CharacterState) -> None:
    state.last_updated_at = _now()
    r.set(_character_key(state.character_id), state.model_dump_json())


def get_character(*, r: redis.Redis, character_id: UUID) -> CharacterState | None:
    raw = r.get(_character_key(character_id))
    if not raw:
        return None
    return CharacterState.model_validate_json(raw)


def require_character(*, r: redis.Redis, character_id: UUID) -> CharacterState:
    state = get_character(r=r, character_id=character_id)
    if state is None:
        raise CharacterNotFoundError("Character not found")
    return state


def create_character(*, r: redis.Redis, request: CharacterCreateRequest) -> CharacterState:
    """Create a character at prompt 1a with an empty visit record.

    The optional first memory becomes the seed memory of the pool.
    """

    now = _now()
    state = CharacterState(
        character_id=uuid4(),
        name=request.name.strip(),
        created_at=now,
        last_updated_at=now,
        skills=request.skills,
        resources=request.resources,
        relationships=request.relationships,
        marks=request.marks,
    )
    if not state.name:
        raise ValueError("Name is required")

    first_memory = (request.first_memory or "").strip()
    if first_memory:
        seeded = record_response(first_memory, MemoryPool(), title="First Memory")
        state.apply_pool(seeded.pool)

    r.set(_character_key(state.character_id), state.model_dump_json())
    r.sadd(CHARACTERS_SET_KEY, str(state.character_id))
    logger.info("Created character %s (%s)", state.character_id, state.name)
    return state


def list_characters(*, r: redis.Redis) -> list[CharacterState]:
    ids = sorted(r.smembers(CHARACTERS_SET_KEY))
    out: list[CharacterState] = []
    for sid in ids:
        try:
            cid = UUID(sid)
        except ValueError:
            continue
        state = get_character(r=r, character_id=cid)
        if state is not None:
            out.append(state)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out


def delete_character(*, r: redis.Redis, character_id: UUID) -> CharacterState:
    """Delete a character together with its journal."""

    state = require_character(r=r, character_id=character_id)
    delete_journal(r=r, journal=Journal(character_id=str(character_id)))
    r.delete(_character_key(character_id))
    r.srem(CHARACTERS_SET_KEY, str(character_id))
    logger.info("Deleted character %s (%s)", character_id, state.name)
    return state
