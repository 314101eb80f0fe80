import sqlite3
from pathlib import Path

import pytest

from scripts import seed_catalog

DATASET = Path(__file__).resolve().parents[1] / "data" / "catalog_sample.yaml"


def test_seed_sample_dataset_counts(tmp_path: Path) -> None:
    dest = tmp_path / "catalog.sqlite"
    summary = seed_catalog.seed(DATASET, dest)

    assert summary == {"categories": 8, "levels": 6, "schools": 5, "programs": 14, "articles": 3}
    conn = sqlite3.connect(dest)
    try:
        assert conn.execute("SELECT COUNT(*) FROM degrees").fetchone()[0] == 14
        assert conn.execute("SELECT is_sponsored FROM schools WHERE id = 's-100'").fetchone()[0] == 1
        assert conn.execute("SELECT status FROM articles WHERE id = 'a-3'").fetchone()[0] == "published"
    finally:
        conn.close()


def test_seed_rebuilds_unless_append(tmp_path: Path) -> None:
    dest = tmp_path / "catalog.sqlite"
    seed_catalog.seed(DATASET, dest)
    conn = sqlite3.connect(dest)
    conn.execute("INSERT INTO schools (id, school_name) VALUES ('s-extra', 'Extra')")
    conn.commit()
    conn.close()

    seed_catalog.seed(DATASET, dest, append=True)
    conn = sqlite3.connect(dest)
    assert conn.execute("SELECT COUNT(*) FROM schools").fetchone()[0] == 6
    conn.close()

    seed_catalog.seed(DATASET, dest)
    conn = sqlite3.connect(dest)
    assert conn.execute("SELECT COUNT(*) FROM schools").fetchone()[0] == 5
    conn.close()


def test_seed_rejects_program_with_unknown_school(tmp_path: Path) -> None:
    source = tmp_path / "broken.yaml"
    source.write_text(
        "categories:\n"
        "  - {category_id: 8, category: Business, concentration_id: 18, concentration: Accounting}\n"
        "levels:\n"
        "  - {level_code: 2, level_name: Bachelor}\n"
        "schools: []\n"
        "programs:\n"
        "  - {id: p-1, program_name: BS, school_id: missing, category_id: 8, concentration_id: 18}\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="unknown school"):
        seed_catalog.seed(source, tmp_path / "out.sqlite")


def test_seed_requires_sections(tmp_path: Path) -> None:
    source = tmp_path / "empty.yaml"
    source.write_text("categories: []\n", encoding="utf-8")
    with pytest.raises(ValueError, match="levels"):
        seed_catalog.seed(source, tmp_path / "out.sqlite")


def test_seed_missing_source(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        seed_catalog.seed(tmp_path / "nope.yaml", tmp_path / "out.sqlite")


def test_main_returns_zero(tmp_path: Path) -> None:
    dest = tmp_path / "cli.sqlite"
    assert seed_catalog.main([str(DATASET), str(dest)]) == 0
    assert dest.exists()
