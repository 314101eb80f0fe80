"""Runtime context shared by the CLI and batch drivers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from perdia.compliance.validator import ComplianceValidator
from perdia.core.config import MonetizationSettings
from perdia.core.provenance import ProvenanceLogger
from perdia.monetization.engine import MonetizationEngine


class RuntimePaths(BaseModel):
    repo_root: Path
    output_dir: Path

    @field_validator("repo_root", "output_dir", mode="before")
    @classmethod
    def _expand(cls, value: Path | str) -> Path:
        return Path(value).expanduser().resolve()


class RuntimeContext(BaseModel):
    """Everything a command needs: settings, engine, validator, article store and audit log."""

    settings: MonetizationSettings
    paths: RuntimePaths
    catalog: Any
    engine: MonetizationEngine
    validator: ComplianceValidator
    articles: Any
    provenance: Optional[ProvenanceLogger] = None
    env: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def close(self) -> None:
        """Release HTTP clients held by REST backends."""
        for resource in (self.catalog, self.articles):
            closer = getattr(resource, "close", None)
            if callable(closer):
                closer()
