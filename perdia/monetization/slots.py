"""Static slot plans per article type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import Slot, SlotStyle


@dataclass(frozen=True)
class StyleSpec:
    shortcode_tag: str
    default_max: Optional[int]
    min_programs: int


SLOT_STYLES: Dict[str, StyleSpec] = {
    "table": StyleSpec("su_ge-picks", 5, 3),
    "hero": StyleSpec("su_ge-picks", 1, 1),
    "compact": StyleSpec("su_ge-picks", 3, 2),
    "qdf": StyleSpec("su_ge-qdf", None, 0),
}

DEFAULT_ARTICLE_TYPE = "default"

ARTICLE_SLOT_PLANS: Dict[str, tuple[Slot, ...]] = {
    "ranking": (
        Slot(name="after_intro", style="table", max_programs=5),
        Slot(name="mid_article", style="compact", max_programs=3),
        Slot(name="near_conclusion", style="hero", max_programs=1),
    ),
    "guide": (
        Slot(name="after_intro", style="compact", max_programs=3),
        Slot(name="near_conclusion", style="hero", max_programs=1),
    ),
    "listicle": (
        Slot(name="after_intro", style="table", max_programs=5),
        Slot(name="mid_article", style="table", max_programs=3),
    ),
    "explainer": (Slot(name="after_intro", style="compact", max_programs=3),),
    "review": (
        Slot(name="after_intro", style="hero", max_programs=1),
        Slot(name="near_conclusion", style="compact", max_programs=3),
    ),
    DEFAULT_ARTICLE_TYPE: (
        Slot(name="after_intro", style="table", max_programs=5),
        Slot(name="mid_article", style="compact", max_programs=3),
    ),
}


def normalize_article_type(article_type: str | None) -> str:
    key = (article_type or "").strip().lower()
    return key if key in ARTICLE_SLOT_PLANS else DEFAULT_ARTICLE_TYPE


def plan_slots(article_type: str | None) -> List[Slot]:
    """Return the ordered slots for an article type; unknown types get the default plan."""
    return list(ARTICLE_SLOT_PLANS[normalize_article_type(article_type)])


def style_spec(style: SlotStyle) -> StyleSpec:
    return SLOT_STYLES.get(style, SLOT_STYLES["table"])


def effective_max(slot: Slot, fallback: int) -> int:
    """Cap for a slot: its own limit, else the style default, else ``fallback``."""
    if slot.max_programs:
        return slot.max_programs
    return style_spec(slot.style).default_max or fallback
