"""In-memory ProgramCatalog used by engine, ranker and backfill tests."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from perdia.catalog.accessor import CatalogResult, CatalogUnavailable, ProgramQuery
from perdia.catalog.models import CategoryEntry, DegreeLevel, Institution, Program

DEFAULT_LEVELS = (
    DegreeLevel(level_code=1, level_name="Associate"),
    DegreeLevel(level_code=2, level_name="Bachelor's"),
    DegreeLevel(level_code=3, level_name="Bachelor's Completion"),
    DegreeLevel(level_code=4, level_name="Master's"),
    DegreeLevel(level_code=5, level_name="Doctorate"),
    DegreeLevel(level_code=6, level_name="Certificate"),
)

DEFAULT_CATEGORIES = (
    CategoryEntry(category_id=8, category="Business", concentration_id=18, concentration="Accounting"),
    CategoryEntry(category_id=8, category="Business", concentration_id=19, concentration="Business Administration"),
    CategoryEntry(category_id=12, category="Nursing", concentration_id=40, concentration="RN to BSN"),
    CategoryEntry(category_id=15, category="Psychology", concentration_id=55, concentration="Counseling"),
)


def school(school_id: str, *, sponsored: bool = False, active: bool = True) -> Institution:
    return Institution(id=school_id, name=f"School {school_id}", is_sponsored=sponsored, is_active=active)


def program(
    program_id: str,
    institution: Institution,
    *,
    name: str | None = None,
    category_id: int = 8,
    concentration_id: int = 18,
    level: int | None = 2,
    sponsored: bool = False,
    tier: int = 0,
    active: bool = True,
) -> Program:
    return Program(
        id=program_id,
        program_name=name or f"Program {program_id}",
        institution=institution,
        category_id=category_id,
        concentration_id=concentration_id,
        degree_level_code=level,
        is_sponsored=sponsored,
        sponsorship_tier=tier,
        is_active=active,
    )


class FakeCatalog:
    """Applies the same filters and pre-ordering as the real backends."""

    def __init__(
        self,
        programs: Iterable[Program] = (),
        categories: Iterable[CategoryEntry] = DEFAULT_CATEGORIES,
        levels: Iterable[DegreeLevel] = DEFAULT_LEVELS,
    ) -> None:
        self.programs: List[Program] = list(programs)
        self.categories: List[CategoryEntry] = list(categories)
        self.levels: List[DegreeLevel] = list(levels)
        self.queries: List[ProgramQuery] = []
        self.fail_queries = False
        self.fail_taxonomy = False

    def query_programs(self, query: ProgramQuery) -> CatalogResult:
        self.queries.append(query)
        if self.fail_queries:
            return CatalogResult.failure("connection refused")
        excluded = set(query.exclude_program_ids)
        matches = [
            item
            for item in self.programs
            if item.is_active
            and item.institution.is_active
            and item.category_id == query.category_id
            and (query.concentration_id is None or item.concentration_id == query.concentration_id)
            and (query.degree_level_code is None or item.degree_level_code == query.degree_level_code)
            and item.id not in excluded
        ]
        matches.sort(key=lambda item: (not item.is_sponsored, -item.sponsorship_tier, item.program_name))
        return CatalogResult.success(matches[: query.limit])

    def list_categories(self, active_only: bool = True) -> List[CategoryEntry]:
        self._check_taxonomy()
        return [entry for entry in self.categories if entry.is_active or not active_only]

    def get_category(self, category_id: int, concentration_id: int) -> Optional[CategoryEntry]:
        self._check_taxonomy()
        for entry in self.categories:
            if entry.category_id == category_id and entry.concentration_id == concentration_id and entry.is_active:
                return entry
        return None

    def get_level(self, level_code: int) -> Optional[DegreeLevel]:
        self._check_taxonomy()
        for level in self.levels:
            if level.level_code == level_code and level.is_active:
                return level
        return None

    def list_levels(self, active_only: bool = True) -> List[DegreeLevel]:
        self._check_taxonomy()
        return [level for level in self.levels if level.is_active or not active_only]

    def _check_taxonomy(self) -> None:
        if self.fail_taxonomy:
            raise CatalogUnavailable("taxonomy backend offline")


def as_row(item: Program) -> Dict[str, Any]:
    """Backend-shaped row with the institution nested under ``schools``."""
    return {
        "id": item.id,
        "program_name": item.program_name,
        "category_id": item.category_id,
        "concentration_id": item.concentration_id,
        "degree_level_code": item.degree_level_code,
        "is_active": item.is_active,
        "is_sponsored": item.is_sponsored,
        "sponsorship_tier": item.sponsorship_tier,
        "geteducated_url": item.url,
        "schools": {
            "id": item.institution.id,
            "school_name": item.institution.name,
            "school_slug": item.institution.slug,
            "geteducated_url": item.institution.url,
            "is_active": item.institution.is_active,
            "is_sponsored": item.institution.is_sponsored,
        },
    }
