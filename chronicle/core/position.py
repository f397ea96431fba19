from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from chronicle.core.errors import CorruptStateError

# Ordered prompt letters. There is no wraparound past the last one.
LETTERS: tuple[str, ...] = ("a", "b", "c")
FULL_LETTER_SET: frozenset[str] = frozenset(LETTERS)


def next_letter(letter: str) -> str | None:
    """Return the letter after `letter`, or None when the sequence is exhausted."""

    idx = LETTERS.index(letter)
    if idx + 1 >= len(LETTERS):
        return None
    return LETTERS[idx + 1]


@dataclass(frozen=True, slots=True, order=True)
class Position:
    number: int
    letter: str = "a"

    def __post_init__(self) -> None:
        if self.number < 1:
            raise CorruptStateError(f"Prompt number must be >= 1 (got {self.number})")
        if self.letter not in FULL_LETTER_SET:
            raise CorruptStateError(f"Unknown prompt letter: {self.letter!r}")

    @property
    def label(self) -> str:
        return f"{self.number}{self.letter}"

    def __str__(self) -> str:
        return self.label


START_POSITION = Position(number=1, letter="a")


@dataclass(frozen=True, slots=True)
class Roll:
    """One d10 and one d6.

    Precondition: `1 <= d10 <= 10` and `1 <= d6 <= 6`. Dice are validated where they
    enter the system (the HTTP request model); the engine takes them as given.
    """

    d10: int
    d6: int

    @property
    def movement(self) -> int:
        return self.d10 - self.d6


@dataclass(frozen=True, slots=True)
class VisitRecord:
    """Which letters have been seen at each prompt number.

    Instances are never mutated; `with_visit` returns a new record.
    """

    visited: Mapping[int, frozenset[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized: dict[int, frozenset[str]] = {}
        for number, letters in self.visited.items():
            if number < 1:
                raise CorruptStateError(f"Visited prompt number must be >= 1 (got {number})")
            letter_set = frozenset(letters)
            unknown = letter_set - FULL_LETTER_SET
            if unknown:
                raise CorruptStateError(
                    f"Visited letters for prompt {number} contain unknown symbols: {sorted(unknown)}"
                )
            if letter_set:
                normalized[number] = letter_set
        object.__setattr__(self, "visited", normalized)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, Iterable[str]]]) -> "VisitRecord":
        """Build from persisted `(number, letters)` pairs; a number may appear only once."""

        visited: dict[int, frozenset[str]] = {}
        for number, letters in pairs:
            if number in visited:
                raise CorruptStateError(f"Visited prompt {number} is recorded more than once")
            visited[number] = frozenset(letters)
        return cls(visited=visited)

    def letters_at(self, number: int) -> frozenset[str]:
        return self.visited.get(number, frozenset())

    def has_visited(self, position: Position) -> bool:
        return position.letter in self.letters_at(position.number)

    def is_exhausted(self, number: int) -> bool:
        return self.letters_at(number) >= FULL_LETTER_SET

    def lowest_unvisited(self, number: int) -> str | None:
        if self.is_exhausted(number):
            return None
        seen = self.letters_at(number)
        return next((letter for letter in LETTERS if letter not in seen), None)

    def numbers(self) -> tuple[int, ...]:
        return tuple(sorted(self.visited))

    def with_visit(self, position: Position) -> "VisitRecord":
        if self.has_visited(position):
            return self
        updated = dict(self.visited)
        updated[position.number] = self.letters_at(position.number) | {position.letter}
        return VisitRecord(visited=updated)

    def issuperset(self, other: "VisitRecord") -> bool:
        return all(self.letters_at(n) >= letters for n, letters in other.visited.items())

    def as_pairs(self) -> list[tuple[int, list[str]]]:
        """Stable, serializable view: numbers ascending, letters in alphabet order."""

        return [(n, [l for l in LETTERS if l in self.visited[n]]) for n in self.numbers()]
