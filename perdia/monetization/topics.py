"""Heuristic mapping from article topics to taxonomy entries and degree levels."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from perdia.catalog.accessor import CatalogUnavailable, ProgramCatalog
from perdia.catalog.models import CategoryEntry, DegreeLevel

from .models import Confidence, TopicMatch

LOGGER = logging.getLogger("perdia.monetization.topics")

CONCENTRATION_LABEL_POINTS = 100
CATEGORY_LABEL_POINTS = 50
CONCENTRATION_WORD_POINTS = 25
CATEGORY_WORD_POINTS = 15
MIN_WORD_LENGTH = 3

# Whole-word abbreviations that stand in for a category label in titles.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "business": ("mba",),
    "nursing": ("bsn", "msn", "dnp"),
    "education": ("edd",),
    "social work": ("msw",),
}

# Checked in order; the first level whose keywords appear wins.
DEGREE_LEVEL_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Associate", ("associate",)),
    ("Bachelor's", ("bachelor", "baccalaureate")),
    ("Master's", ("master", "mba", "msn")),
    ("Doctorate", ("doctorate", "doctoral", "phd", "dnp")),
    ("Certificate", ("certificate", "certification")),
)


def _word_points(label_words: Iterable[str], topic_words: Sequence[str], points: int) -> int:
    total = 0
    for word in label_words:
        if len(word) > MIN_WORD_LENGTH and any(word in tw or tw in word for tw in topic_words):
            total += points
    return total


def _has_keyword(topic_words: Sequence[str], keywords: Iterable[str]) -> bool:
    stripped = {word.strip(".,:;!?()'\"") for word in topic_words}
    return any(keyword in stripped for keyword in keywords)


def score_entry(topic: str, entry: CategoryEntry) -> int:
    """Bag-of-substrings score of ``topic`` against one taxonomy entry."""
    topic_lower = topic.lower()
    topic_words = topic_lower.split()
    concentration = entry.concentration.lower()
    category = entry.category.lower()

    score = 0
    if concentration in topic_lower:
        score += CONCENTRATION_LABEL_POINTS
    if category in topic_lower or _has_keyword(topic_words, CATEGORY_KEYWORDS.get(category, ())):
        score += CATEGORY_LABEL_POINTS
    score += _word_points(concentration.split(), topic_words, CONCENTRATION_WORD_POINTS)
    score += _word_points(category.split(), topic_words, CATEGORY_WORD_POINTS)
    return score


def confidence_for(score: int) -> Confidence:
    if score > 75:
        return "high"
    if score > 40:
        return "medium"
    return "low"


def resolve_level(levels: Iterable[DegreeLevel], text: str) -> Optional[int]:
    """Exact name wins, then a unique partial match; anything else is unresolved."""
    needle = text.strip().lower()
    if not needle:
        return None
    partial: List[DegreeLevel] = []
    for level in levels:
        name = level.level_name.lower()
        if name == needle:
            return level.level_code
        if needle in name:
            partial.append(level)
    if len(partial) == 1:
        return partial[0].level_code
    if partial:
        LOGGER.debug("Degree level %r is ambiguous across %d levels", text, len(partial))
    return None


def extract_degree_level(text: str | None) -> Optional[str]:
    """Guess the degree level an article is about from its wording."""
    lowered = (text or "").lower()
    for label, keywords in DEGREE_LEVEL_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return label
    return None


class TopicMatcher:
    def __init__(self, catalog: ProgramCatalog) -> None:
        self.catalog = catalog

    def match_topic_to_category(self, topic: str | None, degree_level: str | None = None) -> TopicMatch:
        if not topic or not topic.strip():
            return TopicMatch.no_match("No topic provided")

        try:
            entries = self.catalog.list_categories(active_only=True)
        except CatalogUnavailable as exc:
            LOGGER.warning("Topic match skipped: %s", exc.reason)
            return TopicMatch.unavailable(exc.reason)

        best: Optional[CategoryEntry] = None
        best_score = 0
        for entry in entries:
            score = score_entry(topic, entry)
            if score > best_score:
                best, best_score = entry, score

        if best is None:
            return TopicMatch.no_match("No matching category found")

        level_code: Optional[int] = None
        if degree_level:
            try:
                level_code = resolve_level(self.catalog.list_levels(active_only=True), degree_level)
            except CatalogUnavailable as exc:
                LOGGER.warning("Topic match skipped: %s", exc.reason)
                return TopicMatch.unavailable(exc.reason)

        return TopicMatch(
            matched=True,
            category_id=best.category_id,
            concentration_id=best.concentration_id,
            category=best,
            score=best_score,
            confidence=confidence_for(best_score),
            degree_level_code=level_code,
        )
