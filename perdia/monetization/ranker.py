"""Program selection with fallback broadening, sponsorship priority and a per-school cap."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from perdia.catalog.accessor import ProgramCatalog, ProgramQuery
from perdia.catalog.models import Program
from perdia.core.config import EngineConfig

LOGGER = logging.getLogger("perdia.monetization.ranker")


def rank_key(program: Program) -> tuple:
    return (not program.effectively_sponsored, -program.sponsorship_tier, program.program_name.casefold())


def partition_by_sponsorship(programs: Iterable[Program]) -> tuple[List[Program], List[Program]]:
    sponsored: List[Program] = []
    other: List[Program] = []
    for program in programs:
        (sponsored if program.effectively_sponsored else other).append(program)
    return sponsored, other


def apply_diversity(
    programs: Iterable[Program],
    max_per_school: int,
    counts: Optional[Dict[str, int]] = None,
) -> List[Program]:
    """Keep programs in order while their institution is under ``max_per_school``.

    Passing the same ``counts`` across calls makes the cap span several lists.
    """
    counts = {} if counts is None else counts
    kept: List[Program] = []
    for program in programs:
        seen = counts.get(program.institution_id, 0)
        if seen < max_per_school:
            kept.append(program)
            counts[program.institution_id] = seen + 1
    return kept


def merge_candidates(exact: Sequence[Program], broader: Sequence[Program]) -> List[Program]:
    """Exact matches first; broader results only add ids not already present."""
    seen = {program.id for program in exact}
    merged = list(exact)
    for program in broader:
        if program.id not in seen:
            merged.append(program)
            seen.add(program.id)
    return merged


class SelectionRanker:
    def __init__(self, catalog: ProgramCatalog, config: EngineConfig | None = None) -> None:
        self.catalog = catalog
        self.config = config or EngineConfig()

    def select_programs(
        self,
        category_id: int,
        concentration_id: Optional[int],
        degree_level_code: Optional[int] = None,
        max_programs: Optional[int] = None,
        sponsored_only: bool = False,
        exclude_ids: Iterable[str] = (),
    ) -> List[Program]:
        """Pick at most ``max_programs`` programs for one slot.

        Raises ``CatalogUnavailable`` when the backend cannot be queried.
        """
        limit = max_programs or self.config.default_max_programs
        query = ProgramQuery(
            category_id=category_id,
            concentration_id=concentration_id,
            degree_level_code=degree_level_code,
            exclude_program_ids=tuple(exclude_ids),
            limit=self.config.query_limit,
        )
        candidates = self.catalog.query_programs(query).unwrap()

        if (
            len(candidates) < self.config.min_programs_required
            and self.config.enable_category_fallback
            and concentration_id is not None
        ):
            LOGGER.debug(
                "Broadening to category %s: %d exact candidate(s) below minimum %d",
                category_id,
                len(candidates),
                self.config.min_programs_required,
            )
            broader = self.catalog.query_programs(query.relaxed()).unwrap()
            candidates = merge_candidates(candidates, broader)

        if not candidates:
            return []

        sponsored, other = partition_by_sponsorship(candidates)
        counts: Dict[str, int] = {}
        diverse_sponsored = apply_diversity(sponsored, self.config.max_programs_per_school, counts)
        if sponsored_only:
            chosen = diverse_sponsored[:limit]
        else:
            diverse_other = apply_diversity(other, self.config.max_programs_per_school, counts)
            chosen = (diverse_sponsored + diverse_other)[:limit]
        return sorted(chosen, key=rank_key)
