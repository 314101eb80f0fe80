import pytest

from perdia.monetization.models import Slot
from perdia.monetization.slots import (
    ARTICLE_SLOT_PLANS,
    effective_max,
    normalize_article_type,
    plan_slots,
    style_spec,
)


def test_ranking_plan() -> None:
    slots = plan_slots("ranking")
    assert [(slot.name, slot.style, slot.max_programs) for slot in slots] == [
        ("after_intro", "table", 5),
        ("mid_article", "compact", 3),
        ("near_conclusion", "hero", 1),
    ]


@pytest.mark.parametrize("article_type", ["unknown_type_xyz", "", None, "  "])
def test_unknown_types_use_default_plan(article_type) -> None:
    assert plan_slots(article_type) == list(ARTICLE_SLOT_PLANS["default"])
    assert normalize_article_type(article_type) == "default"


def test_article_type_is_case_insensitive() -> None:
    assert plan_slots(" Guide ") == plan_slots("guide")


def test_every_plan_has_unique_slot_names() -> None:
    for article_type, slots in ARTICLE_SLOT_PLANS.items():
        names = [slot.name for slot in slots]
        assert len(names) == len(set(names)), article_type


def test_plan_is_a_fresh_list() -> None:
    slots = plan_slots("explainer")
    slots.append(Slot(name="extra"))
    assert len(plan_slots("explainer")) == 1


def test_unknown_style_renders_as_table() -> None:
    assert Slot(name="x", style="carousel").style == "table"
    assert Slot(name="x", style="HERO").style == "hero"


def test_style_minimums_and_effective_max() -> None:
    assert style_spec("table").min_programs == 3
    assert style_spec("compact").min_programs == 2
    assert style_spec("hero").min_programs == 1
    assert style_spec("qdf").shortcode_tag == "su_ge-qdf"

    assert effective_max(Slot(name="a", style="compact", max_programs=2), 5) == 2
    assert effective_max(Slot(name="b", style="hero"), 5) == 1
    assert effective_max(Slot(name="c", style="qdf"), 5) == 5
