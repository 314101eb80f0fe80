from pathlib import Path

import pytest

from perdia.catalog.accessor import CatalogUnavailable, ProgramCatalog, ProgramQuery, SQLiteProgramCatalog
from perdia.catalog.models import Program
from scripts.seed_catalog import seed

DATASET = Path(__file__).resolve().parents[1] / "data" / "catalog_sample.yaml"


@pytest.fixture()
def catalog(tmp_path: Path) -> SQLiteProgramCatalog:
    db_path = tmp_path / "catalog.sqlite"
    seed(DATASET, db_path)
    return SQLiteProgramCatalog(db_path)


def test_sqlite_catalog_satisfies_protocol(catalog: SQLiteProgramCatalog) -> None:
    assert isinstance(catalog, ProgramCatalog)


def test_query_filters_inactive_programs_and_schools(catalog: SQLiteProgramCatalog) -> None:
    result = catalog.query_programs(ProgramQuery(category_id=8, concentration_id=18, degree_level_code=2))

    assert result.ok
    ids = [program.id for program in result.programs]
    assert "p-7" not in ids  # school s-500 is inactive
    assert "p-9" not in ids  # master's level
    assert sorted(ids) == ["p-1", "p-2", "p-3", "p-4", "p-5", "p-6"]


def test_query_orders_sponsored_then_tier_then_name(catalog: SQLiteProgramCatalog) -> None:
    result = catalog.query_programs(ProgramQuery(category_id=8, concentration_id=18, degree_level_code=2))

    assert [program.id for program in result.programs] == ["p-4", "p-1", "p-2", "p-3", "p-5", "p-6"]


def test_query_excludes_ids_and_honors_limit(catalog: SQLiteProgramCatalog) -> None:
    result = catalog.query_programs(
        ProgramQuery(category_id=8, concentration_id=18, degree_level_code=2, exclude_program_ids=("p-4", "p-1"), limit=2)
    )

    assert [program.id for program in result.programs] == ["p-2", "p-3"]


def test_query_embeds_institution(catalog: SQLiteProgramCatalog) -> None:
    result = catalog.query_programs(ProgramQuery(category_id=8, concentration_id=18, degree_level_code=2, limit=50))
    by_id = {program.id: program for program in result.programs}

    wgu = by_id["p-1"]
    assert isinstance(wgu, Program)
    assert wgu.institution.name == "Western Governors University"
    assert wgu.institution.slug == "western-governors-university"
    assert wgu.is_sponsored is False
    assert wgu.effectively_sponsored is True
    assert by_id["p-4"].effectively_sponsored is True
    assert by_id["p-5"].effectively_sponsored is False


def test_category_level_query_without_concentration(catalog: SQLiteProgramCatalog) -> None:
    result = catalog.query_programs(ProgramQuery(category_id=8, degree_level_code=4))

    assert sorted(program.id for program in result.programs) == ["p-8", "p-9"]


def test_taxonomy_lookups(catalog: SQLiteProgramCatalog) -> None:
    entry = catalog.get_category(8, 18)
    assert entry is not None
    assert entry.label == "Business > Accounting"
    assert catalog.get_category(5, 23) is None  # inactive concentration
    assert catalog.get_category(99, 1) is None

    level = catalog.get_level(2)
    assert level is not None and level.level_name == "Bachelor's"
    assert catalog.get_level(42) is None

    active = catalog.list_categories()
    assert len(active) == 7
    assert len(catalog.list_categories(active_only=False)) == 8
    assert [level.level_code for level in catalog.list_levels()] == [1, 2, 3, 4, 5, 6]


def test_query_failure_is_reported_not_raised(tmp_path: Path) -> None:
    db_path = tmp_path / "catalog.sqlite"
    seed(DATASET, db_path)
    catalog = SQLiteProgramCatalog(db_path)
    catalog.store.execute("DROP TABLE degrees")

    result = catalog.query_programs(ProgramQuery(category_id=8))

    assert not result.ok
    assert "program query failed" in (result.error or "")
    with pytest.raises(CatalogUnavailable):
        result.unwrap()


def test_taxonomy_failure_raises_catalog_unavailable(tmp_path: Path) -> None:
    db_path = tmp_path / "catalog.sqlite"
    seed(DATASET, db_path)
    catalog = SQLiteProgramCatalog(db_path)
    catalog.store.execute("DROP TABLE monetization_categories")

    with pytest.raises(CatalogUnavailable):
        catalog.list_categories()


def test_malformed_taxonomy_row_raises_catalog_unavailable(tmp_path: Path) -> None:
    db_path = tmp_path / "catalog.sqlite"
    seed(DATASET, db_path)
    catalog = SQLiteProgramCatalog(db_path)
    catalog.store.execute(
        "INSERT INTO monetization_categories (category_id, category, concentration_id, concentration, is_active)"
        " VALUES (8, 'Business', 'n/a', 'Broken', 1)"
    )

    with pytest.raises(CatalogUnavailable, match="malformed"):
        catalog.list_categories()
