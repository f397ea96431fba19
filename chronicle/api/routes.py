from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
import redis

from chronicle.api.deps import get_prompt_catalog, get_redis
from chronicle.api.models import (
    ArchiveRequest,
    CharacterCreateRequest,
    CharacterListResponse,
    CharacterState,
    CharacterUpdateRequest,
    DiceRoll,
    ExperienceRequest,
    PromptResponse,
    RollRequest,
    RollResponse,
    TraitKind,
    TraitRequest,
)
from chronicle.catalog.registry import PromptCatalog, ResolvedPrompt
from chronicle.character_store import (
    CharacterNotFoundError,
    create_character,
    delete_character,
    get_character,
    list_characters,
    require_character,
)
from chronicle.core.errors import CorruptStateError
from chronicle.core.position import LETTERS
from chronicle.session import (
    add_memory_experience,
    archive_character_memory,
    change_character_trait,
    create_character_memory,
    retire_character_memory,
    submit_roll,
    update_character,
)
from chronicle.streams import Journal, read_journal
from chronicle.websocket_hub import hub

router = APIRouter()


def _http_error(e: ValueError) -> HTTPException:
    if isinstance(e, CharacterNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, CorruptStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Corrupt character state: {e}")
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


def _prompt_response(prompt: ResolvedPrompt) -> PromptResponse:
    return PromptResponse(
        prompt_number=prompt.number,
        prompt_letter=prompt.letter,
        content=prompt.content,
        is_placeholder=prompt.placeholder,
    )


@router.websocket("/ws/character/{character_id}")
async def character_updates_ws(websocket: WebSocket, character_id: UUID) -> None:
    cid = str(character_id)
    await hub.connect(cid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(cid, websocket)
    except Exception:
        await hub.disconnect(cid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/character", response_model=CharacterState, status_code=status.HTTP_201_CREATED)
async def create_character_route(payload: CharacterCreateRequest, r: redis.Redis = Depends(get_redis)) -> CharacterState:
    try:
        return create_character(r=r, request=payload)
    except ValueError as e:
        raise _http_error(e) from e


@router.get("/character", response_model=CharacterListResponse)
async def list_characters_route(r: redis.Redis = Depends(get_redis)) -> CharacterListResponse:
    return CharacterListResponse(characters=list_characters(r=r))


@router.get("/character/{character_id}", response_model=CharacterState)
async def get_character_route(character_id: UUID, r: redis.Redis = Depends(get_redis)) -> CharacterState:
    state = get_character(r=r, character_id=character_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Character not found")
    return state


@router.delete("/character/{character_id}")
async def delete_character_route(character_id: UUID, r: redis.Redis = Depends(get_redis)) -> dict[str, str]:
    try:
        state = delete_character(r=r, character_id=character_id)
    except ValueError as e:
        raise _http_error(e) from e
    return {"message": "Character deleted successfully", "character_id": str(character_id), "name": state.name}


@router.get("/prompts/{number}", response_model=PromptResponse)
@router.get("/prompts/{number}/{letter}", response_model=PromptResponse)
async def get_prompt_route(
    number: int,
    letter: str = "a",
    catalog: PromptCatalog = Depends(get_prompt_catalog),
) -> PromptResponse:
    if number < 1:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="number must be >= 1")
    if letter not in LETTERS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"letter must be one of {','.join(LETTERS)}")
    return _prompt_response(catalog.resolve(number, letter))


@router.post("/character/{character_id}/roll", response_model=RollResponse)
async def roll_route(
    character_id: UUID,
    payload: RollRequest,
    r: redis.Redis = Depends(get_redis),
    catalog: PromptCatalog = Depends(get_prompt_catalog),
) -> RollResponse:
    try:
        result = submit_roll(
            r=r,
            catalog=catalog,
            character_id=character_id,
            d10=payload.d10,
            d6=payload.d6,
            response=payload.response,
        )
    except ValueError as e:
        raise _http_error(e) from e

    await hub.notify_updated(str(character_id))
    return RollResponse(
        character=result.state,
        dice=DiceRoll(d10=result.roll.d10, d6=result.roll.d6),
        movement=result.roll.movement,
        previous_prompt=result.previous_position.number,
        previous_letter=result.previous_position.letter,
        next_prompt=result.next_position.number,
        next_letter=result.next_position.letter,
        redirected=result.redirected,
        prompt=_prompt_response(result.prompt),
        placeholder_used=result.placeholder_used,
        memory_outcome=result.memory_outcome,
        memory_id=result.memory_id,
        journal_entry_id=result.journal_entry_id,
    )


@router.get("/character/{character_id}/journal")
async def get_journal_route(
    character_id: UUID,
    count: int = 100,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
) -> dict[str, object]:
    """Prompts this character answered, oldest first."""

    if count < 1 or count > 500:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 500")

    try:
        require_character(r=r, character_id=character_id)
    except ValueError as e:
        raise _http_error(e) from e

    journal = Journal(character_id=str(character_id))
    try:
        entries = read_journal(r=r, journal=journal, start=start, end=end, count=count)
    except redis.ResponseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return {"character_id": str(character_id), "stream": journal.key, "entries": entries}


@router.post("/character/{character_id}/memories/{memory_id}/experiences", response_model=CharacterState)
async def add_experience_route(
    character_id: UUID,
    memory_id: str,
    payload: ExperienceRequest,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    try:
        state = add_memory_experience(r=r, character_id=character_id, memory_id=memory_id, text=payload.text)
    except ValueError as e:
        raise _http_error(e) from e

    await hub.notify_updated(str(character_id))
    return state


@router.post("/character/{character_id}/memories/{memory_id}/archive", response_model=CharacterState)
async def archive_memory_route(
    character_id: UUID,
    memory_id: str,
    payload: ArchiveRequest,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    try:
        state = archive_character_memory(r=r, character_id=character_id, memory_id=memory_id, diary=payload.diary)
    except ValueError as e:
        raise _http_error(e) from e

    await hub.notify_updated(str(character_id))
    return state


@router.post("/character/{character_id}/memories/{memory_id}/retire", response_model=CharacterState)
async def retire_memory_route(
    character_id: UUID,
    memory_id: str,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    try:
        state = retire_character_memory(r=r, character_id=character_id, memory_id=memory_id)
    except ValueError as e:
        raise _http_error(e) from e

    await hub.notify_updated(str(character_id))
    return state


@router.patch("/character/{character_id}", response_model=CharacterState)
async def update_character_route(
    character_id: UUID,
    payload: CharacterUpdateRequest,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    try:
        state = update_character(r=r, character_id=character_id, update=payload)
    except ValueError as e:
        raise _http_error(e) from e

    await hub.notify_updated(str(character_id))
    return state


@router.post("/character/{character_id}/memories", response_model=CharacterState, status_code=status.HTTP_201_CREATED)
async def create_memory_route(
    character_id: UUID,
    payload: ExperienceRequest,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    try:
        state = create_character_memory(r=r, character_id=character_id, text=payload.text)
    except ValueError as e:
        raise _http_error(e) from e

    await hub.notify_updated(str(character_id))
    return state


async def _change_trait(*, r: redis.Redis, character_id: UUID, kind: TraitKind, name: str, action: str) -> CharacterState:
    try:
        state = change_character_trait(r=r, character_id=character_id, kind=kind, name=name, action=action)
    except ValueError as e:
        raise _http_error(e) from e

    await hub.notify_updated(str(character_id))
    return state


@router.post("/character/{character_id}/traits/{kind}", response_model=CharacterState)
async def add_trait_route(
    character_id: UUID,
    kind: TraitKind,
    payload: TraitRequest,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    return await _change_trait(r=r, character_id=character_id, kind=kind, name=payload.name, action="add")


@router.post("/character/{character_id}/traits/{kind}/check", response_model=CharacterState)
async def check_trait_route(
    character_id: UUID,
    kind: TraitKind,
    payload: TraitRequest,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    return await _change_trait(r=r, character_id=character_id, kind=kind, name=payload.name, action="check")


@router.post("/character/{character_id}/traits/{kind}/strike", response_model=CharacterState)
async def strike_trait_route(
    character_id: UUID,
    kind: TraitKind,
    payload: TraitRequest,
    r: redis.Redis = Depends(get_redis),
) -> CharacterState:
    return await _change_trait(r=r, character_id=character_id, kind=kind, name=payload.name, action="strike")
