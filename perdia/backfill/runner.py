"""
Batch driver that monetizes existing draft articles.

Each article is either monetized (shortcodes inserted and placements recorded),
marked for manual review, skipped, or recorded as an error; one article's
failure never stops the run.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from perdia.catalog.accessor import CatalogUnavailable
from perdia.compliance.validator import ComplianceValidator
from perdia.core.config import BackfillConfig
from perdia.core.provenance import MonetizationEvent, OutcomeStatus, ProvenanceLogger
from perdia.markup.placement import MID_CONTENT, insert_shortcode, position_for_slot
from perdia.markup.shortcodes import (
    MarkupError,
    check_monetization_compliance,
    find_legacy_shortcodes,
    generate_qdf_shortcode,
)
from perdia.monetization.engine import MonetizationEngine
from perdia.monetization.models import MonetizationRequest, MonetizationResult, TopicMatch
from perdia.monetization.topics import extract_degree_level

from .repository import Article, ArticleRepository, PlacementRecord, RepositoryError

LOGGER = logging.getLogger("perdia.backfill")

LEGACY_ARTICLE_NOTE = """
<div class="legacy-article-notice" style="background: #FEF3C7; border: 1px solid #F59E0B; padding: 16px; margin-bottom: 24px; border-radius: 8px;">
  <strong>Pre-Monetization Article</strong>
  <p style="margin: 8px 0 0 0; font-size: 14px;">
    This article was generated before the current monetization and content rules were implemented.
    It requires manual review and updates to meet GetEducated publishing standards.
  </p>
</div>
"""

PUBLISHED_STATUS = "published"
REVIEW_RISK_LEVEL = "HIGH"

_WORD_RE = re.compile(r"\S+")


@dataclass
class ArticleOutcome:
    article_id: str
    title: str
    status: OutcomeStatus
    action: str = "none"
    reason: Optional[str] = None
    changes: List[str] = field(default_factory=list)


@dataclass
class BackfillSummary:
    dry_run: bool
    processed: int = 0
    updated: int = 0
    marked_for_review: int = 0
    skipped: int = 0
    errors: List[Dict[str, Optional[str]]] = field(default_factory=list)
    details: List[ArticleOutcome] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def record(self, outcome: ArticleOutcome) -> None:
        self.details.append(outcome)
        self.processed += 1
        if outcome.status == "updated":
            self.updated += 1
        elif outcome.status == "marked_for_review":
            self.marked_for_review += 1
        elif outcome.status == "skipped":
            self.skipped += 1
        else:
            self.errors.append({"article_id": outcome.article_id, "title": outcome.title, "error": outcome.reason})


def word_count(content: str) -> int:
    return len(_WORD_RE.findall(content or ""))


class BackfillRunner:
    def __init__(
        self,
        engine: MonetizationEngine,
        validator: ComplianceValidator,
        articles: ArticleRepository,
        config: BackfillConfig | None = None,
        *,
        provenance: ProvenanceLogger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.engine = engine
        self.validator = validator
        self.articles = articles
        self.config = config or BackfillConfig()
        self.provenance = provenance
        self._sleep = sleep

    def run(
        self,
        limit: Optional[int] = None,
        dry_run: bool = True,
        on_progress: Callable[[int, int, Article], None] | None = None,
    ) -> BackfillSummary:
        summary = BackfillSummary(dry_run=dry_run)
        LOGGER.info("Starting %s backfill for statuses %s", "dry-run" if dry_run else "live", self.config.statuses)

        try:
            articles = self.articles.list_articles(self.config.statuses, limit)
        except RepositoryError as exc:
            LOGGER.error("Could not list articles: %s", exc)
            summary.errors.append({"article_id": None, "title": "Fatal error", "error": str(exc)})
            summary.completed_at = datetime.now(timezone.utc)
            return summary

        total = len(articles)
        for index, article in enumerate(articles, start=1):
            if on_progress is not None:
                on_progress(index, total, article)
            LOGGER.debug("Processing %d/%d: %s", index, total, article.display_title)
            summary.record(self.process_article(article, dry_run=dry_run))
            if index < total and self.config.delay_seconds:
                self._sleep(self.config.delay_seconds)

        summary.completed_at = datetime.now(timezone.utc)
        LOGGER.info(
            "Backfill finished: processed=%d updated=%d review=%d skipped=%d errors=%d",
            summary.processed,
            summary.updated,
            summary.marked_for_review,
            summary.skipped,
            len(summary.errors),
        )
        return summary

    def process_article(self, article: Article, dry_run: bool = True) -> ArticleOutcome:
        outcome = ArticleOutcome(article_id=article.id, title=article.display_title, status="skipped")
        try:
            self._process(article, outcome, dry_run)
        except (RepositoryError, CatalogUnavailable, MarkupError) as exc:
            LOGGER.error("Backfill failed for article %s: %s", article.id, exc)
            outcome.status = "error"
            outcome.action = "none"
            outcome.reason = str(exc)
        self._audit(outcome, dry_run)
        return outcome

    def _process(self, article: Article, outcome: ArticleOutcome, dry_run: bool) -> None:
        if article.status == PUBLISHED_STATUS:
            outcome.reason = "Already published - manual review required"
            return

        content = article.content
        if check_monetization_compliance(content).has_monetization:
            legacy = find_legacy_shortcodes(content)
            if not legacy:
                outcome.reason = "Already has valid monetization shortcodes"
                return
            outcome.changes.append(f"Found {len(legacy)} legacy shortcode(s) needing migration")

        topic = article.title or article.seo_title or ""
        level_text = extract_degree_level(" ".join(filter(None, (article.title, article.seo_title, content))))
        match = self.engine.match_topic_to_category(topic, level_text)
        if match.error_kind == "catalog_unavailable":
            LOGGER.error("Catalog unavailable while matching article %s: %s", article.id, match.error)
            outcome.status = "error"
            outcome.reason = f"Catalog unavailable: {match.error}"
            return
        if not match.matched:
            self._mark_for_review(article, outcome, f"No matching monetization category found: {match.error}", dry_run)
            return

        report = self.validator.validate(None, content)
        if report.blocking_findings:
            reason = "Business rule violations: " + "; ".join(finding.message for finding in report.blocking_findings)
            self._mark_for_review(article, outcome, reason, dry_run)
            return

        if match.confidence == "low":
            reason = (
                f'Low confidence category match (score: {match.score}). Topic: "{topic}" '
                f'matched to "{match.category.concentration if match.category else match.concentration_id}"'
            )
            self._mark_for_review(article, outcome, reason, dry_run)
            return

        result = self.engine.generate_monetization(
            MonetizationRequest(
                article_id=article.id,
                category_id=match.category_id,
                concentration_id=match.concentration_id,
                degree_level_code=match.degree_level_code,
                article_type=article.article_type or "default",
            )
        )
        if not result.success:
            outcome.status = "error"
            outcome.reason = result.error
            return

        updated, placements = self._apply(article, result, outcome)
        if not dry_run:
            self.articles.save_monetization(article.id, updated, placements)

        outcome.status = "updated"
        outcome.action = "monetized"
        outcome.reason = self._describe(match)

    def _apply(
        self,
        article: Article,
        result: MonetizationResult,
        outcome: ArticleOutcome,
    ) -> tuple[str, List[PlacementRecord]]:
        content = article.content
        placements: List[PlacementRecord] = []
        has_qdf = False
        for slot in result.slots:
            if not slot.shortcode:
                continue
            position = position_for_slot(slot.name)
            content = insert_shortcode(content, slot.shortcode, position)
            has_qdf = has_qdf or slot.style == "qdf"
            placements.append(
                PlacementRecord(
                    article_id=article.id,
                    category_id=result.category_id,
                    concentration_id=result.concentration_id,
                    level_code=result.degree_level_code,
                    position_in_article=position,
                    shortcode_output=slot.shortcode,
                    program_ids=slot.selected_program_ids,
                )
            )
            outcome.changes.append(f"Added {slot.style} block at {position} ({slot.program_count} program(s))")

        if not has_qdf and word_count(content) > self.config.long_article_words:
            renderer = self.engine.renderer
            content = insert_shortcode(content, generate_qdf_shortcode(renderer.qdf_type, renderer.qdf_header), MID_CONTENT)
            outcome.changes.append("Added Quick Degree Find widget (long article)")
        return content, placements

    def _mark_for_review(self, article: Article, outcome: ArticleOutcome, reason: str, dry_run: bool) -> None:
        outcome.status = "marked_for_review"
        outcome.action = "add_note"
        outcome.reason = reason
        if dry_run:
            return
        content = article.content
        if "legacy-article-notice" not in content:
            content = LEGACY_ARTICLE_NOTE + content
        details: Dict[str, Any] = {
            **article.quality_score_details,
            "backfill_review_reason": reason,
            "backfill_date": datetime.now(timezone.utc).isoformat(),
            "needs_manual_monetization": True,
        }
        self.articles.update_article(
            article.id,
            content=content,
            status=self.config.review_status,
            risk_level=REVIEW_RISK_LEVEL,
            quality_score_details=details,
        )

    @staticmethod
    def _describe(match: TopicMatch) -> str:
        label = match.category.label if match.category else f"{match.category_id}/{match.concentration_id}"
        return f"Matched to {label} ({match.confidence} confidence)"

    def _audit(self, outcome: ArticleOutcome, dry_run: bool) -> None:
        if self.provenance is None:
            return
        self.provenance.log(
            MonetizationEvent(
                stage="backfill",
                message=outcome.reason or outcome.status,
                article_id=outcome.article_id,
                status=outcome.status,
                dry_run=dry_run,
                changes=list(outcome.changes),
                payload={"action": outcome.action},
            )
        )
