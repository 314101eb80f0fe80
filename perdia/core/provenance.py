"""Append-only JSONL audit trail for runtime setup and backfill decisions."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

AuditStage = Literal["bootstrap", "backfill"]
OutcomeStatus = Literal["updated", "marked_for_review", "skipped", "error"]


class MonetizationEvent(BaseModel):
    """One audited decision. Backfill events always name the article and its outcome."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stage: AuditStage
    message: str
    article_id: Optional[str] = None
    status: Optional[OutcomeStatus] = None
    dry_run: Optional[bool] = None
    changes: List[str] = Field(default_factory=list)
    payload: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def require_backfill_outcome(self) -> "MonetizationEvent":
        if self.stage == "backfill" and (self.article_id is None or self.status is None or self.dry_run is None):
            raise ValueError("backfill events need article_id, status and dry_run")
        return self


class ProvenanceLogger:
    """Appends events to ``output_path`` so every automated content change can be traced."""

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, event: MonetizationEvent | Dict[str, Any]) -> MonetizationEvent:
        if not isinstance(event, MonetizationEvent):
            event = MonetizationEvent.model_validate(event)
        with self.output_path.open("a", encoding="utf-8") as handle:
            handle.write(event.model_dump_json(exclude_none=True) + "\n")
        return event

    def read(self, stage: Optional[AuditStage] = None) -> List[MonetizationEvent]:
        """Events recorded so far, optionally only those for ``stage``."""
        if not self.output_path.exists():
            return []
        events = [
            MonetizationEvent.model_validate_json(line)
            for line in self.output_path.read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]
        return [event for event in events if stage is None or event.stage == stage]


__all__ = ["AuditStage", "MonetizationEvent", "OutcomeStatus", "ProvenanceLogger"]
