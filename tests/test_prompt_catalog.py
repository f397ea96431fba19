from __future__ import annotations

from pathlib import Path

import pytest

from chronicle.catalog.registry import (
    CatalogLoadError,
    PromptCatalog,
    PromptEntry,
    load_catalog,
    load_prompts_file,
    parse_prompts,
)
from chronicle.catalog.singleton import get_catalog


FIXTURE = Path(__file__).resolve().parent / "prompts" / "prompts.txt"


def test_fixture_file_loads_and_looks_up() -> None:
    catalog = load_prompts_file(FIXTURE)

    assert catalog.numbers() == (1, 2, 3, 4, 5, 6, 8)
    assert catalog.letters_for(1) == ("a", "b", "c")
    assert catalog.letters_for(2) == ("a", "b")
    assert catalog.exists(4, "c")
    assert not catalog.exists(7, "a")

    # Multi-line content is kept, the id line is not.
    assert catalog.content(1, "b") == "You wake in a cellar you do not recognize.\nThere is dirt under your nails."
    assert catalog.content(7, "a") is None


def test_session_catalog_is_the_fixture() -> None:
    assert get_catalog().exists(8, "a")


def test_parse_skips_bad_blocks_and_sorts() -> None:
    text = "2b\nsecond\n\n\n1d\nbad letter\n\n\nnope\nno id\n\n\n1a\n\n\n2a\nfirst of two\n\n\n1a\nonly one"
    entries = parse_prompts(text)

    assert [e.label for e in entries] == ["1a", "2a", "2b"]
    assert entries[0].content == "only one"


def test_later_duplicate_wins() -> None:
    catalog = PromptCatalog.from_entries([PromptEntry(3, "a", "old"), PromptEntry(3, "a", "new")])
    assert catalog.content(3, "a") == "new"
    assert len(catalog) == 1


def test_resolve_exact_prompt() -> None:
    resolved = load_prompts_file(FIXTURE).resolve(3, "a")

    assert resolved.placeholder is False
    assert resolved.content == "You find a letter you wrote and never sent."


def test_resolve_uses_sibling_placeholder_when_letter_missing() -> None:
    resolved = load_prompts_file(FIXTURE).resolve(2, "c")

    assert resolved.placeholder is True
    assert resolved.source_letter == "a"
    assert resolved.content == "[This is a placeholder for prompt 2c. Using content from 2a for now.]"


def test_resolve_unknown_number_placeholder() -> None:
    resolved = load_prompts_file(FIXTURE).resolve(7, "b")

    assert resolved.placeholder is True
    assert resolved.source_letter is None
    assert resolved.content == "[Prompt 7b - Please work with your game master to create content for this prompt]"


def test_missing_file_is_fatal_when_strict(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHRONICLE_STRICT_PROMPTS", "1")
    with pytest.raises(CatalogLoadError):
        load_catalog(path=tmp_path / "missing.txt")


def test_missing_file_falls_back_when_not_strict(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHRONICLE_STRICT_PROMPTS", "0")
    catalog = load_catalog(path=tmp_path / "missing.txt")
    assert catalog.exists(1, "a")


def test_empty_file_is_a_load_error(tmp_path: Path) -> None:
    path = tmp_path / "prompts.txt"
    path.write_text("Prompts\n\nnothing useful here\n", encoding="utf-8")
    with pytest.raises(CatalogLoadError):
        load_prompts_file(path)
