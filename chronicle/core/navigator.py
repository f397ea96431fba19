from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Protocol

from chronicle.core.position import LETTERS, Position, Roll, VisitRecord, next_letter


class PromptLookup(Protocol):
    """Read-only view of the prompt catalog needed for navigation."""

    def exists(self, number: int, letter: str) -> bool:  # pragma: no cover
        ...

    def numbers(self) -> Iterable[int]:  # pragma: no cover
        ...


@dataclass(frozen=True, slots=True)
class NavigationResult:
    """Outcome of one roll.

    - `position`: where the player goes next.
    - `history`: the input history plus `position`.
    - `redirected`: equal dice at the last letter sent the player to a later number.
    - `placeholder_used`: the catalog has no text for `position`; callers show a placeholder.
    """

    position: Position
    history: VisitRecord
    movement: int
    redirected: bool = False
    placeholder_used: bool = False


def _known_numbers(*, current: Position, history: VisitRecord, prompts: PromptLookup) -> set[int]:
    known = set(prompts.numbers())
    known.update(history.numbers())
    known.add(current.number)
    return known


def _numbers_after(number: int, known: set[int]) -> Iterator[int]:
    return (n for n in sorted(known) if n > number)


def redirect_target(*, current: Position, history: VisitRecord, prompts: PromptLookup) -> Position:
    """First not-fully-visited number after `current`, at its lowest unseen letter.

    When every known later number is exhausted, go to a brand new number one past
    the highest known one.
    """

    known = _known_numbers(current=current, history=history, prompts=prompts)
    for number in _numbers_after(current.number, known):
        letter = history.lowest_unvisited(number)
        if letter is not None:
            return Position(number=number, letter=letter)

    return Position(number=max(known) + 1, letter=LETTERS[0])


def arrival_letter(*, number: int, history: VisitRecord) -> str:
    # A fully visited number keeps the player on the last letter; no search forward.
    if history.is_exhausted(number):
        return LETTERS[-1]
    return history.lowest_unvisited(number) or LETTERS[0]


def advance(*, current: Position, roll: Roll, history: VisitRecord, prompts: PromptLookup) -> NavigationResult:
    """Compute the next prompt position for a roll.

    Deterministic in its inputs; `prompts` is only read.
    """

    movement = roll.movement
    redirected = False

    if movement == 0:
        letter = next_letter(current.letter)
        if letter is not None:
            target = Position(number=current.number, letter=letter)
        else:
            target = redirect_target(current=current, history=history, prompts=prompts)
            redirected = True
    else:
        number = max(1, current.number + movement)
        target = Position(number=number, letter=arrival_letter(number=number, history=history))

    return NavigationResult(
        position=target,
        history=history.with_visit(target),
        movement=movement,
        redirected=redirected,
        placeholder_used=not prompts.exists(target.number, target.letter),
    )
