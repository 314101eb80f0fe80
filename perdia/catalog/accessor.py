"""Read interface over programs, institutions and the monetization taxonomy."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Type, TypeVar, runtime_checkable

from pydantic import ValidationError

from .models import CategoryEntry, DegreeLevel, Program
from .storage import CatalogStore

LOGGER = logging.getLogger("perdia.catalog")

DEFAULT_QUERY_LIMIT = 50


class CatalogUnavailable(RuntimeError):
    """The catalog backend could not answer; distinct from a query with zero matches."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class ProgramQuery:
    category_id: int
    concentration_id: Optional[int] = None
    degree_level_code: Optional[int] = None
    exclude_program_ids: tuple[str, ...] = ()
    limit: int = DEFAULT_QUERY_LIMIT

    def relaxed(self) -> "ProgramQuery":
        """Same query at category level only."""
        return ProgramQuery(
            category_id=self.category_id,
            concentration_id=None,
            degree_level_code=self.degree_level_code,
            exclude_program_ids=self.exclude_program_ids,
            limit=self.limit,
        )


@dataclass(frozen=True)
class CatalogResult:
    """Either the matching programs or the reason the backend failed."""

    programs: tuple[Program, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, programs: Sequence[Program]) -> "CatalogResult":
        return cls(programs=tuple(programs))

    @classmethod
    def failure(cls, reason: str) -> "CatalogResult":
        return cls(error=reason)

    def unwrap(self) -> List[Program]:
        if self.error is not None:
            raise CatalogUnavailable(self.error)
        return list(self.programs)


@runtime_checkable
class ProgramCatalog(Protocol):
    """Interface the engine needs from storage.

    ``query_programs`` reports backend failures through ``CatalogResult``; the
    taxonomy lookups raise ``CatalogUnavailable``.
    """

    def query_programs(self, query: ProgramQuery) -> CatalogResult:
        ...

    def list_categories(self, active_only: bool = True) -> List[CategoryEntry]:
        ...

    def get_category(self, category_id: int, concentration_id: int) -> CategoryEntry | None:
        ...

    def get_level(self, level_code: int) -> DegreeLevel | None:
        ...

    def list_levels(self, active_only: bool = True) -> List[DegreeLevel]:
        ...


_PROGRAM_COLUMNS = """
    d.id, d.program_name, d.category_id, d.concentration_id, d.degree_level_code,
    d.is_active, d.is_sponsored, d.sponsorship_tier, d.geteducated_url,
    s.id AS school_id, s.school_name, s.school_slug, s.geteducated_url AS school_url,
    s.is_active AS school_active, s.is_sponsored AS school_sponsored
"""


def _program_from_sqlite(row: sqlite3.Row) -> Program:
    return Program.from_row(
        {
            "id": row["id"],
            "program_name": row["program_name"],
            "category_id": row["category_id"],
            "concentration_id": row["concentration_id"],
            "degree_level_code": row["degree_level_code"],
            "is_active": bool(row["is_active"]),
            "is_sponsored": bool(row["is_sponsored"]),
            "sponsorship_tier": row["sponsorship_tier"],
            "geteducated_url": row["geteducated_url"],
            "schools": {
                "id": row["school_id"],
                "school_name": row["school_name"],
                "school_slug": row["school_slug"],
                "geteducated_url": row["school_url"],
                "is_active": bool(row["school_active"]),
                "is_sponsored": bool(row["school_sponsored"]),
            },
        }
    )


class SQLiteProgramCatalog:
    """ProgramCatalog backed by a local ``CatalogStore``."""

    def __init__(self, store: CatalogStore | Path) -> None:
        self.store = store if isinstance(store, CatalogStore) else CatalogStore(Path(store))

    def query_programs(self, query: ProgramQuery) -> CatalogResult:
        sql = (
            f"SELECT {_PROGRAM_COLUMNS} FROM degrees d JOIN schools s ON s.id = d.school_id"
            " WHERE d.is_active = 1 AND s.is_active = 1 AND d.category_id = ?"
        )
        params: List[Any] = [query.category_id]
        if query.concentration_id is not None:
            sql += " AND d.concentration_id = ?"
            params.append(query.concentration_id)
        if query.degree_level_code is not None:
            sql += " AND d.degree_level_code = ?"
            params.append(query.degree_level_code)
        if query.exclude_program_ids:
            placeholders = ", ".join("?" for _ in query.exclude_program_ids)
            sql += f" AND d.id NOT IN ({placeholders})"
            params.extend(query.exclude_program_ids)
        sql += " ORDER BY d.is_sponsored DESC, d.sponsorship_tier DESC, d.program_name ASC LIMIT ?"
        params.append(query.limit)

        try:
            rows = self.store.query(sql, tuple(params))
            programs = [_program_from_sqlite(row) for row in rows]
        except (sqlite3.Error, ValidationError, ValueError) as exc:
            LOGGER.error("Program query failed", extra={"category_id": query.category_id, "error": str(exc)})
            return CatalogResult.failure(f"program query failed: {exc}")
        return CatalogResult.success(programs)

    def list_categories(self, active_only: bool = True) -> List[CategoryEntry]:
        sql = "SELECT category_id, category, concentration_id, concentration, is_active FROM monetization_categories"
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY category_id, concentration_id"
        return parse_taxonomy(CategoryEntry, [_bool_row(row) for row in self._query(sql)], "monetization_categories")

    def get_category(self, category_id: int, concentration_id: int) -> CategoryEntry | None:
        rows = self._query(
            "SELECT category_id, category, concentration_id, concentration, is_active"
            " FROM monetization_categories"
            " WHERE category_id = ? AND concentration_id = ? AND is_active = 1",
            (category_id, concentration_id),
        )
        entries = parse_taxonomy(CategoryEntry, [_bool_row(row) for row in rows[:1]], "monetization_categories")
        return entries[0] if entries else None

    def get_level(self, level_code: int) -> DegreeLevel | None:
        rows = self._query(
            "SELECT level_code, level_name, is_active FROM monetization_levels WHERE level_code = ? AND is_active = 1",
            (level_code,),
        )
        levels = parse_taxonomy(DegreeLevel, [_bool_row(row) for row in rows[:1]], "monetization_levels")
        return levels[0] if levels else None

    def list_levels(self, active_only: bool = True) -> List[DegreeLevel]:
        sql = "SELECT level_code, level_name, is_active FROM monetization_levels"
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY level_code"
        return parse_taxonomy(DegreeLevel, [_bool_row(row) for row in self._query(sql)], "monetization_levels")

    def _query(self, sql: str, params: tuple | None = None) -> list[sqlite3.Row]:
        try:
            return self.store.query(sql, params)
        except sqlite3.Error as exc:
            raise CatalogUnavailable(f"taxonomy lookup failed: {exc}") from exc


T = TypeVar("T", CategoryEntry, DegreeLevel)


def parse_taxonomy(model: Type[T], rows: Sequence[Dict[str, Any]], source: str) -> List[T]:
    """Validate taxonomy rows; a malformed row means the catalog cannot be trusted."""
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as exc:
        LOGGER.error("Malformed %s row: %s", source, exc)
        raise CatalogUnavailable(f"{source} returned a malformed row: {exc.errors()[0]['msg']}") from exc


def _bool_row(row: sqlite3.Row) -> Dict[str, Any]:
    payload = dict(row)
    if "is_active" in payload:
        payload["is_active"] = bool(payload["is_active"])
    return payload


__all__ = [
    "CatalogResult",
    "CatalogUnavailable",
    "DEFAULT_QUERY_LIMIT",
    "ProgramCatalog",
    "ProgramQuery",
    "SQLiteProgramCatalog",
    "parse_taxonomy",
]
