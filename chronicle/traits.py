from __future__ import annotations

from chronicle.api.models import Trait, TraitKind

# Only skills can be checked off as experienced.
CHECKABLE_KINDS: frozenset[TraitKind] = frozenset({TraitKind.skills})


def _index_of(traits: list[Trait], name: str) -> int:
    for idx, t in enumerate(traits):
        if t.name == name:
            return idx
    raise ValueError("Trait not found")


def add_trait(traits: list[Trait], name: str) -> list[Trait]:
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Trait name is required")
    if any(t.name == cleaned for t in traits):
        raise ValueError(f"Trait already exists: {cleaned}")
    return [*traits, Trait(name=cleaned)]


def check_trait(traits: list[Trait], name: str, *, kind: TraitKind) -> list[Trait]:
    """Mark a skill as experienced. Struck out traits cannot be checked."""

    if kind not in CHECKABLE_KINDS:
        raise ValueError(f"Cannot check {kind.value}")

    idx = _index_of(traits, name)
    trait = traits[idx]
    if trait.struck_out:
        raise ValueError(f"Cannot check a lost trait: {name}")
    if trait.checked:
        raise ValueError(f"Trait already checked: {name}")

    updated = list(traits)
    updated[idx] = trait.model_copy(update={"checked": True})
    return updated


def strike_trait(traits: list[Trait], name: str) -> list[Trait]:
    """Lose a trait. It stays on the sheet, struck out."""

    idx = _index_of(traits, name)
    trait = traits[idx]
    if trait.struck_out:
        raise ValueError(f"Trait already lost: {name}")

    updated = list(traits)
    updated[idx] = trait.model_copy(update={"struck_out": True})
    return updated
