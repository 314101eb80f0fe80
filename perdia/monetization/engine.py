"""
Monetization engine facade.

``MonetizationEngine`` validates a request against the taxonomy, walks the
article's slots in order, selects programs for each slot without repeating a
program across slots, and renders the shortcode for every slot. Catalog
failures stop at this boundary and come back as ``success=False`` results.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from perdia.catalog.accessor import CatalogUnavailable, ProgramCatalog
from perdia.catalog.models import CategoryEntry
from perdia.core.config import EngineConfig, RendererConfig
from perdia.markup.shortcodes import build_cta_url, generate_picks_shortcode, generate_qdf_shortcode

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
from .slots import effective_max, normalize_article_type, plan_slots, style_spec
from .topics import TopicMatcher

LOGGER = logging.getLogger("perdia.monetization.engine")


class InvalidRequest(ValueError):
    """Request ids missing or not resolvable to active taxonomy entries."""


class MonetizationEngine:
    def __init__(
        self,
        catalog: ProgramCatalog,
        config: EngineConfig | None = None,
        renderer: RendererConfig | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or EngineConfig()
        self.renderer = renderer or RendererConfig()
        self.ranker = SelectionRanker(catalog, self.config)
        self.topics = TopicMatcher(catalog)

    def match_topic_to_category(self, topic: str | None, degree_level: str | None = None) -> TopicMatch:
        return self.topics.match_topic_to_category(topic, degree_level)

    def plan_slots(self, article_type: str | None) -> List[Slot]:
        return plan_slots(article_type)

    def generate_monetization(self, request: MonetizationRequest) -> MonetizationResult:
        try:
            entry = self._validate(request)
            slots = request.slots if request.slots else self.plan_slots(request.article_type)
            results = self._process_slots(request, entry, slots)
        except InvalidRequest as exc:
            LOGGER.info("Rejected monetization request for article %s: %s", request.article_id, exc)
            return MonetizationResult.failed(str(exc), "invalid_request", request.article_id)
        except CatalogUnavailable as exc:
            LOGGER.error("Catalog unavailable while monetizing article %s: %s", request.article_id, exc.reason)
            return MonetizationResult.failed(f"Catalog unavailable: {exc.reason}", "catalog_unavailable", request.article_id)

        return MonetizationResult(
            success=True,
            article_id=request.article_id,
            category_id=request.category_id,
            concentration_id=request.concentration_id,
            degree_level_code=request.degree_level_code,
            slots=results,
            total_programs_selected=sum(result.program_count for result in results),
            metadata=GenerationMetadata(
                article_type=normalize_article_type(request.article_type),
                config_used=self.config.model_dump(),
            ),
        )

    def _validate(self, request: MonetizationRequest) -> CategoryEntry:
        if not request.category_id or not request.concentration_id:
            raise InvalidRequest("category_id and concentration_id are required")
        entry = self.catalog.get_category(request.category_id, request.concentration_id)
        if entry is None:
            raise InvalidRequest(
                f"Invalid category_id ({request.category_id}) or concentration_id ({request.concentration_id})"
            )
        if request.degree_level_code is not None and self.catalog.get_level(request.degree_level_code) is None:
            raise InvalidRequest(f"Invalid degree level code: {request.degree_level_code}")
        return entry

    def _process_slots(
        self,
        request: MonetizationRequest,
        entry: CategoryEntry,
        slots: List[Slot],
    ) -> List[SlotResult]:
        used: Set[str] = set()
        results: List[SlotResult] = []
        for slot in slots:
            result = self._process_slot(request, entry, slot, used)
            used.update(result.selected_program_ids)
            results.append(result)
        return results

    def _process_slot(
        self,
        request: MonetizationRequest,
        entry: CategoryEntry,
        slot: Slot,
        used: Set[str],
    ) -> SlotResult:
        spec = style_spec(slot.style)
        if slot.style == "qdf":
            return SlotResult(
                name=slot.name,
                style=slot.style,
                shortcode=generate_qdf_shortcode(self.renderer.qdf_type, self.renderer.qdf_header),
                meets_minimum=True,
            )

        programs = self.ranker.select_programs(
            category_id=entry.category_id,
            concentration_id=entry.concentration_id,
            degree_level_code=request.degree_level_code,
            max_programs=effective_max(slot, self.config.default_max_programs),
            sponsored_only=slot.sponsored_only,
            exclude_ids=sorted(used),
        )
        selected = [SelectedProgram.from_program(program) for program in programs]
        if len(selected) < spec.min_programs:
            LOGGER.debug("Slot %s filled %d of minimum %d", slot.name, len(selected), spec.min_programs)

        return SlotResult(
            name=slot.name,
            style=slot.style,
            shortcode=self._render_picks(entry, request.degree_level_code),
            selected_program_ids=[program.id for program in selected],
            selected_programs=selected,
            program_count=len(selected),
            has_sponsored=any(program.is_sponsored for program in selected),
            meets_minimum=len(selected) >= spec.min_programs,
        )

    def _render_picks(self, entry: CategoryEntry, level_code: Optional[int]) -> str:
        cta_url = build_cta_url(
            level_code,
            entry.category,
            entry.concentration,
            prefix=self.renderer.cta_url_prefix,
            level_slugs=self.renderer.level_slugs,
        )
        return generate_picks_shortcode(
            entry.category_id,
            entry.concentration_id,
            level_code,
            header=self.renderer.picks_header,
            cta_button=self.renderer.cta_button,
            cta_url=cta_url,
        )
