from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from chronicle.core.position import LETTERS

logger = logging.getLogger(__name__)

_PROMPT_ID_RE = re.compile(r"^(\d+)([a-c])$")
_HEADER_RE = re.compile(r"^\s*Prompts\s*\n\s*\n", re.IGNORECASE)
_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n\s*\n")


@dataclass(frozen=True, slots=True)
class PromptEntry:
    number: int
    letter: str
    content: str

    @property
    def label(self) -> str:
        return f"{self.number}{self.letter}"


@dataclass(frozen=True, slots=True)
class ResolvedPrompt:
    """Prompt text to show for a position.

    `placeholder` is set when the catalog had no text at exactly this position.
    `source_letter` names the sibling letter whose entry exists, when there is one.
    """

    number: int
    letter: str
    content: str
    placeholder: bool = False
    source_letter: str | None = None


def placeholder_text(*, number: int, letter: str, sibling_letter: str | None) -> str:
    if sibling_letter is not None:
        return (
            f"[This is a placeholder for prompt {number}{letter}. "
            f"Using content from {number}{sibling_letter} for now.]"
        )
    return f"[Prompt {number}{letter} - Please work with your game master to create content for this prompt]"


@dataclass(frozen=True, slots=True)
class PromptCatalog:
    """Prompt text keyed by (number, letter).

    Read-only once built. Satisfies the navigator's `PromptLookup` protocol.
    """

    by_key: dict[tuple[int, str], PromptEntry]
    _letters_by_number: dict[int, tuple[str, ...]]

    @staticmethod
    def from_entries(entries: list[PromptEntry]) -> "PromptCatalog":
        by_key: dict[tuple[int, str], PromptEntry] = {}
        for e in entries:
            # Later entries override earlier ones, like re-importing a corrected file.
            by_key[(e.number, e.letter)] = e

        letters: dict[int, list[str]] = {}
        for number, letter in by_key:
            letters.setdefault(number, []).append(letter)

        return PromptCatalog(
            by_key=dict(sorted(by_key.items())),
            _letters_by_number={n: tuple(sorted(ls)) for n, ls in sorted(letters.items())},
        )

    def exists(self, number: int, letter: str) -> bool:
        return (number, letter) in self.by_key

    def numbers(self) -> tuple[int, ...]:
        return tuple(self._letters_by_number)

    def letters_for(self, number: int) -> tuple[str, ...]:
        return self._letters_by_number.get(number, ())

    def get(self, number: int, letter: str) -> PromptEntry | None:
        return self.by_key.get((number, letter))

    def content(self, number: int, letter: str) -> str | None:
        entry = self.get(number, letter)
        return entry.content if entry is not None else None

    def resolve(self, number: int, letter: str) -> ResolvedPrompt:
        entry = self.get(number, letter)
        if entry is not None:
            return ResolvedPrompt(number=number, letter=letter, content=entry.content)

        sibling = next(iter(self.letters_for(number)), None)
        if sibling is None:
            logger.warning("Prompt %s%s not found; using placeholder content", number, letter)
        else:
            logger.warning("Prompt %s%s not found, but %s%s exists; using placeholder", number, letter, number, sibling)
        return ResolvedPrompt(
            number=number,
            letter=letter,
            content=placeholder_text(number=number, letter=letter, sibling_letter=sibling),
            placeholder=True,
            source_letter=sibling,
        )

    def __len__(self) -> int:
        return len(self.by_key)


class CatalogLoadError(RuntimeError):
    pass


def parse_prompts(text: str) -> list[PromptEntry]:
    """Parse the prompt book text format.

    Blocks are separated by two or more blank lines. A block starts with its id
    (e.g. `12b`) on its own line; the remaining lines are the prompt text.
    Blocks with an unknown id or no text are skipped.
    """

    body = _HEADER_RE.sub("", text.replace("\r\n", "\n"), count=1)

    out: list[PromptEntry] = []
    for block in _BLOCK_SPLIT_RE.split(body):
        lines = block.strip().split("\n")
        if not lines or not lines[0].strip():
            continue
        m = _PROMPT_ID_RE.match(lines[0].strip())
        if not m:
            continue
        content = "\n".join(lines[1:]).strip()
        if not content:
            continue
        out.append(PromptEntry(number=int(m.group(1)), letter=m.group(2), content=content))

    out.sort(key=lambda e: (e.number, LETTERS.index(e.letter)))
    return out


def load_prompts_file(path: Path) -> PromptCatalog:
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise CatalogLoadError(f"Prompts file not found: {path}") from e

    entries = parse_prompts(raw)
    if not entries:
        raise CatalogLoadError(f"No prompts found in {path}")
    return PromptCatalog.from_entries(entries)


def _fallback_catalog() -> PromptCatalog:
    """Tiny built-in prompt set for local runs without a prompts file."""

    entries = [
        PromptEntry(1, "a", "Something you were sure of turns out to be false. Who told you the lie?"),
        PromptEntry(1, "b", "You wake somewhere you do not remember falling asleep. What do you find beside you?"),
        PromptEntry(1, "c", "A stranger calls you by a name you have not used in years."),
        PromptEntry(2, "a", "You take something that was not offered. What did it cost them?"),
        PromptEntry(2, "b", "An old debt is called in. Who collects it?"),
        PromptEntry(3, "a", "You find a letter you wrote long ago and never sent."),
        PromptEntry(4, "a", "Someone you trusted leaves without a word."),
        PromptEntry(5, "a", "The season turns and you are still here. What have you lost along the way?"),
    ]
    return PromptCatalog.from_entries(entries)


def load_catalog(*, path: Path) -> PromptCatalog:
    # Fall back to the built-in set when the file is missing or empty.
    # Set CHRONICLE_STRICT_PROMPTS=1 to make that an error instead.
    strict = os.getenv("CHRONICLE_STRICT_PROMPTS", "").strip().lower() in {"1", "true", "yes"}

    try:
        catalog = load_prompts_file(path)
    except CatalogLoadError:
        if strict:
            raise
        logger.warning("Could not load prompts from %s; using built-in fallback catalog", path)
        return _fallback_catalog()

    logger.info("Loaded %d prompts across %d numbers from %s", len(catalog), len(catalog.numbers()), path)
    return catalog
