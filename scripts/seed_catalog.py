"""Seed the SQLite program catalog (and optional draft articles) from a YAML dataset."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from perdia.backfill.repository import Article, SQLiteArticleRepository  # noqa: E402
from perdia.catalog.storage import CatalogStore  # noqa: E402

LOGGER = logging.getLogger("seed_catalog")

REQUIRED_SECTIONS = ("categories", "levels", "schools", "programs")


def seed(source: Path, dest_path: Path, *, append: bool = False) -> Dict[str, int]:
    """Hydrate ``dest_path`` from the YAML dataset at ``source`` and return row counts."""

    source = source.resolve()
    if not source.exists():
        raise FileNotFoundError(f"Dataset {source} does not exist")

    dest_path = dest_path.resolve()
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    if dest_path.exists() and not append:
        dest_path.unlink()

    dataset = _load_dataset(source)

    store = CatalogStore(dest_path)
    _insert_categories(store, dataset["categories"])
    _insert_levels(store, dataset["levels"])
    _insert_schools(store, dataset["schools"])
    _insert_programs(store, dataset["programs"])
    _insert_articles(SQLiteArticleRepository(store), dataset["articles"])

    return {section: len(dataset.get(section, [])) for section in (*REQUIRED_SECTIONS, "articles")}


# ---------------------------------------------------------------------------
# Loading helpers


def _load_dataset(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a mapping at the root")

    for section in REQUIRED_SECTIONS:
        rows = payload.get(section)
        if not isinstance(rows, list):
            raise ValueError(f"{path} must define a list under '{section}'")

    school_ids = {str(row["id"]) for row in payload["schools"]}
    taxonomy = {(int(row["category_id"]), int(row["concentration_id"])) for row in payload["categories"]}
    levels = {int(row["level_code"]) for row in payload["levels"]}
    for program in payload["programs"]:
        program_id = program.get("id")
        if str(program.get("school_id")) not in school_ids:
            raise ValueError(f"Program {program_id} references unknown school {program.get('school_id')}")
        key = (int(program["category_id"]), int(program["concentration_id"]))
        if key not in taxonomy:
            raise ValueError(f"Program {program_id} references unknown category/concentration {key}")
        level = program.get("degree_level_code")
        if level is not None and int(level) not in levels:
            raise ValueError(f"Program {program_id} references unknown degree level {level}")

    articles = payload.get("articles") or []
    if not isinstance(articles, list):
        raise ValueError(f"{path} 'articles' must be a list when present")
    payload["articles"] = articles
    return payload


def _flag(row: Dict[str, Any], key: str, default: bool) -> int:
    return int(bool(row.get(key, default)))


def _insert_categories(store: CatalogStore, rows: List[Dict[str, Any]]) -> None:
    count = store.execute_many(
        "INSERT OR REPLACE INTO monetization_categories (category_id, category, concentration_id, concentration, is_active)"
        " VALUES (?, ?, ?, ?, ?)",
        (
            (row["category_id"], row["category"], row["concentration_id"], row["concentration"], _flag(row, "is_active", True))
            for row in rows
        ),
    )
    LOGGER.info("Inserted %d taxonomy entries", count)


def _insert_levels(store: CatalogStore, rows: List[Dict[str, Any]]) -> None:
    count = store.execute_many(
        "INSERT OR REPLACE INTO monetization_levels (level_code, level_name, is_active) VALUES (?, ?, ?)",
        ((row["level_code"], row["level_name"], _flag(row, "is_active", True)) for row in rows),
    )
    LOGGER.info("Inserted %d degree levels", count)


def _insert_schools(store: CatalogStore, rows: List[Dict[str, Any]]) -> None:
    count = store.execute_many(
        "INSERT OR REPLACE INTO schools (id, school_name, school_slug, geteducated_url, is_active, is_sponsored)"
        " VALUES (?, ?, ?, ?, ?, ?)",
        (
            (
                str(row["id"]),
                row["school_name"],
                row.get("school_slug"),
                row.get("geteducated_url"),
                _flag(row, "is_active", True),
                _flag(row, "is_sponsored", False),
            )
            for row in rows
        ),
    )
    LOGGER.info("Inserted %d schools", count)


def _insert_programs(store: CatalogStore, rows: List[Dict[str, Any]]) -> None:
    count = store.execute_many(
        "INSERT OR REPLACE INTO degrees (id, program_name, school_id, category_id, concentration_id,"
        " degree_level_code, is_active, is_sponsored, sponsorship_tier, geteducated_url)"
        " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            (
                str(row["id"]),
                row["program_name"],
                str(row["school_id"]),
                row["category_id"],
                row["concentration_id"],
                row.get("degree_level_code"),
                _flag(row, "is_active", True),
                _flag(row, "is_sponsored", False),
                row.get("sponsorship_tier") or 0,
                row.get("geteducated_url"),
            )
            for row in rows
        ),
    )
    LOGGER.info("Inserted %d programs", count)


def _insert_articles(repository: SQLiteArticleRepository, rows: List[Dict[str, Any]]) -> None:
    for row in rows:
        repository.add_article(Article.model_validate({"status": "drafting", **row}))
    if rows:
        LOGGER.info("Inserted %d articles", len(rows))


# ---------------------------------------------------------------------------
# CLI


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the monetization catalog from YAML")
    parser.add_argument("source", type=Path, help="Dataset YAML (e.g., data/catalog_sample.yaml)")
    parser.add_argument(
        "dest",
        type=Path,
        help="Destination SQLite file (e.g., outputs/catalog/catalog.sqlite)",
    )
    parser.add_argument("--append", action="store_true", help="Keep existing rows instead of rebuilding")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    summary = seed(args.source, args.dest, append=args.append)
    LOGGER.info("Seed summary: %s", summary)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
