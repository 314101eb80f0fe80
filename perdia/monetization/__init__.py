"""
Program selection, topic matching and slot planning behind ``MonetizationEngine``.
"""

from .engine import InvalidRequest, MonetizationEngine
from .models import (
    GenerationMetadata,
    MonetizationRequest,
    MonetizationResult,
    SelectedProgram,
    Slot,
    SlotResult,
    TopicMatch,
)
from .ranker import SelectionRanker
from .slots import ARTICLE_SLOT_PLANS, SLOT_STYLES, plan_slots
from .topics import TopicMatcher, confidence_for, extract_degree_level, score_entry

__all__ = [
    "ARTICLE_SLOT_PLANS",
    "GenerationMetadata",
    "InvalidRequest",
    "MonetizationEngine",
    "MonetizationRequest",
    "MonetizationResult",
    "SLOT_STYLES",
    "SelectedProgram",
    "SelectionRanker",
    "Slot",
    "SlotResult",
    "TopicMatch",
    "TopicMatcher",
    "confidence_for",
    "extract_degree_level",
    "plan_slots",
    "score_entry",
]
