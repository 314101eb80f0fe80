from collections import Counter

import pytest

from perdia.catalog.accessor import CatalogUnavailable
from perdia.core.config import EngineConfig
from perdia.monetization.ranker import SelectionRanker, apply_diversity, merge_candidates
from tests.mocks.catalog import FakeCatalog, program, school


def test_same_school_is_capped_regardless_of_requested_max() -> None:
    campus = school("s-1")
    catalog = FakeCatalog([program(f"p-{i}", campus) for i in range(5)])
    ranker = SelectionRanker(catalog, EngineConfig(max_programs_per_school=2))

    picked = ranker.select_programs(8, 18, max_programs=5)

    assert len(picked) == 2
    assert {item.institution_id for item in picked} == {"s-1"}


def test_cap_spans_sponsored_and_unsponsored_programs() -> None:
    campus = school("s-1")
    catalog = FakeCatalog(
        [
            program("p-1", campus, sponsored=True, tier=2),
            program("p-2", campus, sponsored=True, tier=1),
            program("p-3", campus),
            program("p-4", campus),
            program("p-5", school("s-2")),
        ]
    )
    ranker = SelectionRanker(catalog, EngineConfig(max_programs_per_school=2))

    picked = ranker.select_programs(8, 18, max_programs=5)

    assert [item.id for item in picked] == ["p-1", "p-2", "p-5"]
    assert Counter(item.institution_id for item in picked)["s-1"] == 2


def test_sponsored_programs_lead_and_tiers_order_them() -> None:
    catalog = FakeCatalog(
        [
            program("p-a", school("s-1"), name="Alpha"),
            program("p-b", school("s-2"), name="Beta", sponsored=True, tier=1),
            program("p-c", school("s-3", sponsored=True), name="Gamma", tier=3),
            program("p-d", school("s-4"), name="Delta"),
        ]
    )
    picked = SelectionRanker(catalog).select_programs(8, 18, max_programs=4)

    # p-c is sponsored through its school
    assert [item.id for item in picked] == ["p-c", "p-b", "p-a", "p-d"]


def test_result_is_truncated_to_max_programs() -> None:
    catalog = FakeCatalog([program(f"p-{i}", school(f"s-{i}")) for i in range(8)])
    picked = SelectionRanker(catalog).select_programs(8, 18, max_programs=3)
    assert len(picked) == 3


def test_default_max_programs_applies_when_unspecified() -> None:
    catalog = FakeCatalog([program(f"p-{i}", school(f"s-{i}")) for i in range(8)])
    picked = SelectionRanker(catalog, EngineConfig(default_max_programs=4)).select_programs(8, 18)
    assert len(picked) == 4


def test_fallback_broadens_to_category_and_keeps_exact_matches() -> None:
    exact = program("p-exact", school("s-1"), concentration_id=18)
    others = [program(f"p-{i}", school(f"s-{i}"), concentration_id=19) for i in range(2, 6)]
    catalog = FakeCatalog([exact, *others])
    ranker = SelectionRanker(catalog, EngineConfig(min_programs_required=3))

    picked = ranker.select_programs(8, 18, max_programs=5)

    assert "p-exact" in {item.id for item in picked}
    assert len(picked) == 5
    assert [query.concentration_id for query in catalog.queries] == [18, None]


def test_fallback_disabled_or_without_concentration() -> None:
    catalog = FakeCatalog([program("p-1", school("s-1")), program("p-2", school("s-2"), concentration_id=19)])

    disabled = SelectionRanker(catalog, EngineConfig(enable_category_fallback=False))
    assert [item.id for item in disabled.select_programs(8, 18)] == ["p-1"]
    assert len(catalog.queries) == 1

    catalog.queries.clear()
    category_only = SelectionRanker(catalog).select_programs(8, None)
    assert len(category_only) == 2
    assert len(catalog.queries) == 1


def test_fallback_never_reduces_candidates() -> None:
    catalog = FakeCatalog(
        [
            program("p-1", school("s-1")),
            program("p-2", school("s-2")),
            program("p-3", school("s-3"), concentration_id=19),
        ]
    )
    strict = SelectionRanker(catalog, EngineConfig(enable_category_fallback=False)).select_programs(8, 18)
    broad = SelectionRanker(catalog).select_programs(8, 18)
    assert {item.id for item in strict} <= {item.id for item in broad}


def test_sponsored_only_drops_unsponsored() -> None:
    catalog = FakeCatalog(
        [
            program("p-1", school("s-1"), sponsored=True),
            program("p-2", school("s-2", sponsored=True)),
            program("p-3", school("s-3")),
        ]
    )
    picked = SelectionRanker(catalog).select_programs(8, 18, sponsored_only=True)
    assert sorted(item.id for item in picked) == ["p-1", "p-2"]


def test_exclude_ids_are_passed_to_the_catalog() -> None:
    catalog = FakeCatalog([program("p-1", school("s-1")), program("p-2", school("s-2"))])
    picked = SelectionRanker(catalog, EngineConfig(min_programs_required=0)).select_programs(
        8, 18, exclude_ids=["p-1"]
    )
    assert [item.id for item in picked] == ["p-2"]
    assert catalog.queries[0].exclude_program_ids == ("p-1",)


def test_empty_catalog_returns_empty_list() -> None:
    assert SelectionRanker(FakeCatalog()).select_programs(8, 18) == []


def test_catalog_failure_raises() -> None:
    catalog = FakeCatalog([program("p-1", school("s-1"))])
    catalog.fail_queries = True
    with pytest.raises(CatalogUnavailable):
        SelectionRanker(catalog).select_programs(8, 18)


def test_helpers() -> None:
    campus = school("s-1")
    items = [program(f"p-{i}", campus) for i in range(3)]
    counts = {"s-1": 1}
    assert [item.id for item in apply_diversity(items, 2, counts)] == ["p-0"]
    assert counts == {"s-1": 2}

    merged = merge_candidates(items[:2], items[1:])
    assert [item.id for item in merged] == ["p-0", "p-1", "p-2"]
