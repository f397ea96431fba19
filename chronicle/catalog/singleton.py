from __future__ import annotations

from pathlib import Path

from chronicle.catalog.registry import PromptCatalog, load_catalog


_CATALOG: PromptCatalog | None = None


def init_catalog(*, path: Path) -> PromptCatalog:
    """Load the prompt catalog once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _CATALOG
    if _CATALOG is None:
        _CATALOG = load_catalog(path=path)
    return _CATALOG


def reset_catalog_for_tests() -> None:
    global _CATALOG
    _CATALOG = None


def get_catalog() -> PromptCatalog:
    if _CATALOG is None:
        raise RuntimeError("Prompt catalog not initialized. Call init_catalog() at startup.")
    return _CATALOG
