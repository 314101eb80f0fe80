"""Typed records for the program catalog and monetization taxonomy."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CategoryEntry(BaseModel):
    """One (category, concentration) pair from the monetization taxonomy."""

    model_config = ConfigDict(frozen=True)

    category_id: int
    category: str
    concentration_id: int
    concentration: str
    is_active: bool = True

    @property
    def label(self) -> str:
        return f"{self.category} > {self.concentration}"


class DegreeLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    level_code: int
    level_name: str
    is_active: bool = True


class Institution(BaseModel):
    """A school owning one or more programs."""

    model_config = ConfigDict(frozen=True)

    id: str
    # Store rows use the school_* column names.
    name: str = Field(validation_alias=AliasChoices("name", "school_name"))
    slug: Optional[str] = Field(default=None, validation_alias=AliasChoices("slug", "school_slug"))
    url: Optional[str] = Field(default=None, validation_alias=AliasChoices("url", "geteducated_url"))
    is_active: bool = True
    is_sponsored: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> str:
        return str(value)


class Program(BaseModel):
    """A degree offering with its owning institution embedded."""

    model_config = ConfigDict(frozen=True)

    id: str
    program_name: str
    institution: Institution
    category_id: int
    concentration_id: int
    degree_level_code: Optional[int] = None
    is_active: bool = True
    is_sponsored: bool = False
    sponsorship_tier: int = 0
    url: Optional[str] = Field(default=None, validation_alias=AliasChoices("url", "geteducated_url"))

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("sponsorship_tier", mode="before")
    @classmethod
    def default_tier(cls, value: Any) -> int:
        return 0 if value is None else value

    @property
    def institution_id(self) -> str:
        return self.institution.id

    @property
    def effectively_sponsored(self) -> bool:
        """Sponsored directly or through the owning institution."""
        return self.is_sponsored or self.institution.is_sponsored

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Program":
        """Build a Program from a backend row with the institution nested under ``schools``."""
        payload = dict(row)
        school = payload.pop("schools", None) or payload.pop("institution", None)
        if school is None:
            raise ValueError(f"Program row {payload.get('id')!r} is missing its institution")
        payload["institution"] = school
        return cls.model_validate(payload)
