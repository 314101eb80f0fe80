import pytest

from perdia.catalog.models import CategoryEntry, DegreeLevel
from perdia.monetization.topics import (
    TopicMatcher,
    confidence_for,
    extract_degree_level,
    resolve_level,
    score_entry,
)
from tests.mocks.catalog import DEFAULT_LEVELS, FakeCatalog

ACCOUNTING = CategoryEntry(category_id=8, category="Business", concentration_id=18, concentration="Accounting")


def test_mba_title_scores_high_against_business_accounting() -> None:
    matcher = TopicMatcher(FakeCatalog())

    match = matcher.match_topic_to_category("Best Online MBA Programs in Accounting", None)

    assert match.matched
    assert (match.category_id, match.concentration_id) == (8, 18)
    assert match.score >= 175
    assert match.confidence == "high"
    assert match.degree_level_code is None


def test_score_entry_components() -> None:
    # concentration substring + category substring + both word bonuses
    assert score_entry("Best Online Business Degrees in Accounting", ACCOUNTING) == 190
    # "mba" counts as the Business label
    assert score_entry("Online MBA in Accounting", ACCOUNTING) == 190
    assert score_entry("Accounting careers", ACCOUNTING) == 125
    assert score_entry("Sourdough starters", ACCOUNTING) == 0


def test_short_label_words_do_not_score() -> None:
    entry = CategoryEntry(category_id=12, category="Nursing", concentration_id=40, concentration="RN to BSN")
    # "rn", "to" and "bsn" are too short for word bonuses
    assert score_entry("rn to", entry) == 0


def test_matching_is_deterministic_and_first_entry_wins_ties() -> None:
    twins = [
        CategoryEntry(category_id=1, category="Arts", concentration_id=1, concentration="Design"),
        CategoryEntry(category_id=2, category="Media", concentration_id=2, concentration="Design"),
    ]
    matcher = TopicMatcher(FakeCatalog(categories=twins))

    first = matcher.match_topic_to_category("Online Design Degrees")
    second = matcher.match_topic_to_category("Online Design Degrees")

    assert first == second
    assert first.category_id == 1


@pytest.mark.parametrize("topic", [None, "", "   "])
def test_empty_topic_is_not_matched(topic) -> None:
    match = TopicMatcher(FakeCatalog()).match_topic_to_category(topic)
    assert not match.matched
    assert match.error == "No topic provided"


def test_unrelated_topic_is_not_matched() -> None:
    match = TopicMatcher(FakeCatalog()).match_topic_to_category("Why Sourdough Starters Fail")
    assert not match.matched
    assert match.error == "No matching category found"
    assert match.error_kind is None


def test_degree_level_resolution() -> None:
    matcher = TopicMatcher(FakeCatalog())

    exact = matcher.match_topic_to_category("Accounting degrees", "Bachelor's")
    partial = matcher.match_topic_to_category("Accounting degrees", "master")
    ambiguous = matcher.match_topic_to_category("Accounting degrees", "bachelor")
    unknown = matcher.match_topic_to_category("Accounting degrees", "Postdoc")

    assert exact.degree_level_code == 2
    assert partial.degree_level_code == 4
    assert ambiguous.matched and ambiguous.degree_level_code is None
    assert unknown.matched and unknown.degree_level_code is None


def test_resolve_level_helpers() -> None:
    assert resolve_level(DEFAULT_LEVELS, "Bachelor's Completion") == 3
    assert resolve_level(DEFAULT_LEVELS, "doctor") == 5
    assert resolve_level(DEFAULT_LEVELS, "  ") is None
    assert resolve_level([DegreeLevel(level_code=9, level_name="Diploma")], "Certificate") is None


def test_extract_degree_level_keywords() -> None:
    assert extract_degree_level("Best Online MBA Programs") == "Master's"
    assert extract_degree_level("Affordable Bachelor's in Nursing") == "Bachelor's"
    assert extract_degree_level("PhD in Psychology") == "Doctorate"
    assert extract_degree_level("Associate degrees that pay") == "Associate"
    assert extract_degree_level("Graduate certificate options") == "Certificate"
    assert extract_degree_level("Sourdough") is None
    assert extract_degree_level(None) is None


def test_confidence_thresholds() -> None:
    assert confidence_for(76) == "high"
    assert confidence_for(75) == "medium"
    assert confidence_for(41) == "medium"
    assert confidence_for(40) == "low"


def test_catalog_outage_is_reported_as_unavailable() -> None:
    catalog = FakeCatalog()
    catalog.fail_taxonomy = True

    match = TopicMatcher(catalog).match_topic_to_category("Accounting degrees")

    assert not match.matched
    assert match.error == "taxonomy backend offline"
    assert match.error_kind == "catalog_unavailable"
