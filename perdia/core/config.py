"""
Typed configuration for the monetization engine and its drivers.

Every section has working defaults so an engine can be constructed without a
YAML file; ``load_settings`` layers a YAML document on top of them.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

DEFAULT_LEVEL_SLUGS: Dict[int, str] = {
    1: "associate",
    2: "bachelor",
    3: "bachelor",
    4: "master",
    5: "doctorate",
    6: "certificate",
}


def _snake_case_keys(data: Any) -> Any:
    """Accept the dashboard's camelCase keys (``minProgramsRequired``) alongside snake_case."""
    if not isinstance(data, dict):
        return data
    return {
        (_CAMEL_BOUNDARY.sub("_", key).lower() if isinstance(key, str) else key): value
        for key, value in data.items()
    }


class EngineConfig(BaseModel):
    """Selection levers for the monetization engine."""

    model_config = ConfigDict(frozen=True)

    min_programs_required: int = Field(default=3, ge=0, description="Candidates needed before relaxing the concentration filter.")
    max_programs_per_school: int = Field(default=2, ge=1, description="Diversity cap per institution within one slot.")
    default_max_programs: int = Field(default=5, ge=1)
    sponsored_priority_ratio: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Reserved. Reported in metadata but not consumed by the ranker.",
    )
    enable_category_fallback: bool = True
    enable_related_concentration_fallback: bool = Field(
        default=True,
        description="Reserved. No related-concentration table exists yet.",
    )
    query_limit: int = Field(default=50, ge=1, le=1000)

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case(cls, data: Any) -> Any:
        return _snake_case_keys(data)


class RendererConfig(BaseModel):
    """Labels and URL pieces used when rendering shortcodes."""

    model_config = ConfigDict(frozen=True)

    picks_header: str = "GetEducated's Picks"
    cta_button: str = "View More Degrees"
    cta_url_prefix: str = "/online-degrees/"
    qdf_type: str = "simple"
    qdf_header: str = "Find Your Degree"
    level_slugs: Dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_LEVEL_SLUGS))

    @field_validator("cta_url_prefix")
    @classmethod
    def ensure_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.endswith("/"):
            value += "/"
        return value

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case(cls, data: Any) -> Any:
        return _snake_case_keys(data)


Severity = Literal["blocking", "major", "minor"]


class ComplianceConfig(BaseModel):
    """Tunables for the compliance validator. Domain lists are fixed constants, not config."""

    model_config = ConfigDict(frozen=True)

    publisher_name: str = "GetEducated"
    attribution_terms: List[str] = Field(default_factory=lambda: ["ranking report"])
    attribution_window: Optional[int] = Field(
        default=None,
        ge=1,
        description="Characters around a dollar amount searched for attribution; None searches the whole article.",
    )
    unknown_shortcode_severity: Severity = "blocking"
    legacy_shortcode_severity: Severity = "major"
    flag_unapproved_external_links: bool = True

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case(cls, data: Any) -> Any:
        return _snake_case_keys(data)


class CatalogConfig(BaseModel):
    """Where program and taxonomy data are read from."""

    model_config = ConfigDict()

    backend: Literal["sqlite", "rest"] = "sqlite"
    sqlite_path: Path = Field(default=Path("outputs/catalog/catalog.sqlite"))
    api_base: Optional[str] = None
    api_key_env: str = "PERDIA_CATALOG_API_KEY"
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("sqlite_path", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser()

    @model_validator(mode="after")
    def require_api_base_for_rest(self) -> "CatalogConfig":
        if self.backend == "rest" and not self.api_base:
            raise ValueError("catalog.api_base is required when catalog.backend is 'rest'")
        return self


class BackfillConfig(BaseModel):
    """Batch driver settings."""

    model_config = ConfigDict(frozen=True)

    statuses: List[str] = Field(
        default_factory=lambda: ["idea", "drafting", "refinement", "qa_review", "ready_to_publish"]
    )
    review_status: str = "qa_review"
    delay_seconds: float = Field(default=0.1, ge=0.0)
    long_article_words: int = Field(default=1500, ge=1)
    audit_log_path: Optional[Path] = Field(default=Path("outputs/backfill/events.jsonl"))

    @field_validator("statuses", mode="before")
    @classmethod
    def strip_items(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, list):
            return [item.strip() if isinstance(item, str) else item for item in value]
        return value


class MonetizationSettings(BaseModel):
    """Top-level configuration document."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    renderer: RendererConfig = Field(default_factory=RendererConfig)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    backfill: BackfillConfig = Field(default_factory=BackfillConfig)


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def _resolve_config_path(value: Any, base_dir: Path) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    else:
        path = path.resolve()
    return str(path)


def _absolutize_paths(data: Dict[str, Any], base_dir: Path) -> None:
    catalog = data.get("catalog")
    if isinstance(catalog, dict) and catalog.get("sqlite_path"):
        catalog["sqlite_path"] = _resolve_config_path(catalog["sqlite_path"], base_dir)

    backfill = data.get("backfill")
    if isinstance(backfill, dict) and backfill.get("audit_log_path"):
        backfill["audit_log_path"] = _resolve_config_path(backfill["audit_log_path"], base_dir)


def load_settings(path: Path, *, base_dir: Path | None = None) -> MonetizationSettings:
    """Load the settings YAML; relative paths resolve against ``base_dir`` (default: the file's directory)."""
    path = path.expanduser().resolve()
    data = read_yaml_file(path)
    _absolutize_paths(data, base_dir=(base_dir or path.parent).resolve())
    try:
        return MonetizationSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid monetization settings in {path}") from exc


def merge_engine_config(base: EngineConfig, overrides: Dict[str, Any]) -> EngineConfig:
    """
    Return a new EngineConfig with overrides applied on top of the base config.

    Overrides may use either snake_case or the dashboard's camelCase keys.
    """
    payload = base.model_dump()
    payload.update(_snake_case_keys(overrides))
    try:
        return EngineConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError("Invalid overrides for EngineConfig") from exc
