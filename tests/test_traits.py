from __future__ import annotations

import pytest

from chronicle.api.models import Trait, TraitKind
from chronicle.traits import add_trait, check_trait, strike_trait


def test_add_trait_strips_and_rejects_duplicates() -> None:
    traits = add_trait([], "  Sailing ")
    assert traits == [Trait(name="Sailing")]

    with pytest.raises(ValueError):
        add_trait(traits, "Sailing")
    with pytest.raises(ValueError):
        add_trait(traits, "  ")


def test_check_marks_a_skill_without_touching_the_input() -> None:
    traits = [Trait(name="Sailing"), Trait(name="Fencing")]

    updated = check_trait(traits, "Fencing", kind=TraitKind.skills)

    assert updated[1].checked is True
    assert traits[1].checked is False
    assert updated[0] == traits[0]


@pytest.mark.parametrize("kind", [TraitKind.resources, TraitKind.relationships, TraitKind.marks])
def test_only_skills_can_be_checked(kind: TraitKind) -> None:
    with pytest.raises(ValueError) as e:
        check_trait([Trait(name="x")], "x", kind=kind)
    assert str(e.value) == f"Cannot check {kind.value}"


def test_struck_out_trait_is_final() -> None:
    traits = strike_trait([Trait(name="A boat", checked=True)], "A boat")

    assert traits == [Trait(name="A boat", checked=True, struck_out=True)]
    with pytest.raises(ValueError):
        strike_trait(traits, "A boat")
    with pytest.raises(ValueError):
        check_trait(traits, "A boat", kind=TraitKind.skills)


def test_unknown_trait() -> None:
    with pytest.raises(ValueError) as e:
        strike_trait([], "ghost")
    assert str(e.value) == "Trait not found"
