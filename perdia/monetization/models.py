"""Request and result records passed across the engine boundary."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from perdia.catalog.models import CategoryEntry, Program

LOGGER = logging.getLogger("perdia.monetization")

SlotStyle = Literal["table", "hero", "compact", "qdf"]
Confidence = Literal["high", "medium", "low"]
ErrorKind = Literal["invalid_request", "catalog_unavailable"]

_KNOWN_STYLES = ("table", "hero", "compact", "qdf")


class Slot(BaseModel):
    """A placement inside an article and how it should be rendered."""

    model_config = ConfigDict(frozen=True)

    name: str
    style: SlotStyle = "table"
    max_programs: Optional[int] = Field(default=None, ge=1)
    sponsored_only: bool = False

    @field_validator("style", mode="before")
    @classmethod
    def coerce_style(cls, value: Any) -> str:
        normalized = str(value or "").strip().lower()
        if normalized not in _KNOWN_STYLES:
            LOGGER.debug("Unknown slot style %r rendered as table", value)
            return "table"
        return normalized


class MonetizationRequest(BaseModel):
    article_id: Optional[str] = None
    category_id: Optional[int] = None
    concentration_id: Optional[int] = None
    degree_level_code: Optional[int] = None
    article_type: str = "default"
    slots: Optional[List[Slot]] = None


class SelectedProgram(BaseModel):
    """Display fields of one promoted program."""

    model_config = ConfigDict(frozen=True)

    id: str
    program_name: str
    institution_id: str
    institution_name: str
    is_sponsored: bool
    sponsorship_tier: int = 0
    url: Optional[str] = None

    @classmethod
    def from_program(cls, program: Program) -> "SelectedProgram":
        return cls(
            id=program.id,
            program_name=program.program_name,
            institution_id=program.institution_id,
            institution_name=program.institution.name,
            is_sponsored=program.effectively_sponsored,
            sponsorship_tier=program.sponsorship_tier,
            url=program.url,
        )


class SlotResult(BaseModel):
    name: str
    style: SlotStyle
    shortcode: str
    selected_program_ids: List[str] = Field(default_factory=list)
    selected_programs: List[SelectedProgram] = Field(default_factory=list)
    program_count: int = 0
    has_sponsored: bool = False
    meets_minimum: bool = True


class GenerationMetadata(BaseModel):
    article_type: str
    config_used: Dict[str, Any]
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MonetizationResult(BaseModel):
    """Outcome of one engine run. ``success=False`` carries ``error`` and ``error_kind``."""

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    article_id: Optional[str] = None
    category_id: Optional[int] = None
    concentration_id: Optional[int] = None
    degree_level_code: Optional[int] = None
    slots: List[SlotResult] = Field(default_factory=list)
    total_programs_selected: int = 0
    metadata: Optional[GenerationMetadata] = None

    @classmethod
    def failed(cls, error: str, kind: ErrorKind, article_id: Optional[str] = None) -> "MonetizationResult":
        return cls(success=False, error=error, error_kind=kind, article_id=article_id)


class TopicMatch(BaseModel):
    matched: bool
    category_id: Optional[int] = None
    concentration_id: Optional[int] = None
    category: Optional[CategoryEntry] = None
    score: int = 0
    confidence: Optional[Confidence] = None
    degree_level_code: Optional[int] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def no_match(cls, error: str) -> "TopicMatch":
        return cls(matched=False, error=error)

    @classmethod
    def unavailable(cls, error: str) -> "TopicMatch":
        """The taxonomy could not be read, as opposed to nothing matching."""
        return cls(matched=False, error=error, error_kind="catalog_unavailable")


__all__ = [
    "Confidence",
    "ErrorKind",
    "GenerationMetadata",
    "MonetizationRequest",
    "MonetizationResult",
    "SelectedProgram",
    "Slot",
    "SlotResult",
    "SlotStyle",
    "TopicMatch",
]
