"""HTTP catalog backend for a hosted PostgREST endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import httpx
from pydantic import ValidationError

from .accessor import CatalogResult, CatalogUnavailable, ProgramQuery, parse_taxonomy
from .models import CategoryEntry, DegreeLevel, Program

LOGGER = logging.getLogger("perdia.catalog.rest")

SCHOOL_EMBED = "schools!inner(id,school_name,school_slug,geteducated_url,is_sponsored,is_active)"

QueryParams = List[Tuple[str, str]]


@dataclass
class RestConfig:
    base_url: str
    api_key: str | None = None


def _pg_bool(value: bool) -> str:
    return "true" if value else "false"


class PostgrestClient:
    """Thin wrapper around ``httpx.Client`` speaking the ``/rest/v1/<table>`` dialect."""

    def __init__(
        self,
        config: RestConfig,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._config = config
        if client is None:
            self._client = httpx.Client(base_url=config.base_url, timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    def select(self, table: str, params: QueryParams) -> List[Dict[str, Any]]:
        response = self._client.get(f"/rest/v1/{table}", params=params, headers=self._build_headers())
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as exc:
            raise RuntimeError(f"{table} endpoint returned non-JSON payload") from exc
        if not isinstance(data, list):
            raise RuntimeError(f"{table} endpoint returned {type(data).__name__}, expected a list")
        return data

    def update(self, table: str, filters: QueryParams, payload: Dict[str, Any]) -> None:
        response = self._client.patch(
            f"/rest/v1/{table}",
            params=filters,
            json=payload,
            headers=self._build_headers(prefer="return=minimal"),
        )
        response.raise_for_status()

    def upsert(self, table: str, payload: Dict[str, Any], *, on_conflict: str) -> None:
        response = self._client.post(
            f"/rest/v1/{table}",
            params=[("on_conflict", on_conflict)],
            json=payload,
            headers=self._build_headers(prefer="resolution=merge-duplicates,return=minimal"),
        )
        response.raise_for_status()

    def close(self) -> None:
        if getattr(self, "_owns_client", False):
            self._client.close()

    def _build_headers(self, prefer: str | None = None) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self._config.api_key:
            headers["apikey"] = self._config.api_key
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def __enter__(self) -> "PostgrestClient":  # pragma: no cover - convenience
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - convenience
        self.close()


class RestProgramCatalog:
    """ProgramCatalog reading ``degrees``/``schools`` and the taxonomy tables over HTTP."""

    def __init__(self, client: PostgrestClient) -> None:
        self._client = client

    def query_programs(self, query: ProgramQuery) -> CatalogResult:
        params: QueryParams = [
            ("select", f"*,{SCHOOL_EMBED}"),
            ("is_active", "eq.true"),
            ("schools.is_active", "eq.true"),
            ("category_id", f"eq.{query.category_id}"),
        ]
        if query.concentration_id is not None:
            params.append(("concentration_id", f"eq.{query.concentration_id}"))
        if query.degree_level_code is not None:
            params.append(("degree_level_code", f"eq.{query.degree_level_code}"))
        if query.exclude_program_ids:
            params.append(("id", f"not.in.({','.join(query.exclude_program_ids)})"))
        params.append(("order", "is_sponsored.desc,sponsorship_tier.desc,program_name.asc"))
        params.append(("limit", str(query.limit)))

        try:
            rows = self._client.select("degrees", params)
            programs = [Program.from_row(row) for row in rows]
        except (httpx.HTTPError, RuntimeError, ValidationError, ValueError) as exc:
            LOGGER.error("Program query failed", extra={"category_id": query.category_id, "error": str(exc)})
            return CatalogResult.failure(f"program query failed: {exc}")
        return CatalogResult.success(programs)

    def list_categories(self, active_only: bool = True) -> List[CategoryEntry]:
        params: QueryParams = [("select", "*")]
        if active_only:
            params.append(("is_active", "eq.true"))
        params.append(("order", "category_id.asc,concentration_id.asc"))
        return parse_taxonomy(CategoryEntry, self._select("monetization_categories", params), "monetization_categories")

    def get_category(self, category_id: int, concentration_id: int) -> CategoryEntry | None:
        rows = self._select(
            "monetization_categories",
            [
                ("select", "*"),
                ("category_id", f"eq.{category_id}"),
                ("concentration_id", f"eq.{concentration_id}"),
                ("is_active", "eq.true"),
                ("limit", "1"),
            ],
        )
        entries = parse_taxonomy(CategoryEntry, rows[:1], "monetization_categories")
        return entries[0] if entries else None

    def get_level(self, level_code: int) -> DegreeLevel | None:
        rows = self._select(
            "monetization_levels",
            [
                ("select", "*"),
                ("level_code", f"eq.{level_code}"),
                ("is_active", "eq.true"),
                ("limit", "1"),
            ],
        )
        levels = parse_taxonomy(DegreeLevel, rows[:1], "monetization_levels")
        return levels[0] if levels else None

    def list_levels(self, active_only: bool = True) -> List[DegreeLevel]:
        params: QueryParams = [("select", "*")]
        if active_only:
            params.append(("is_active", "eq.true"))
        params.append(("order", "level_code.asc"))
        return parse_taxonomy(DegreeLevel, self._select("monetization_levels", params), "monetization_levels")

    def close(self) -> None:
        self._client.close()

    def _select(self, table: str, params: Sequence[Tuple[str, str]]) -> List[Dict[str, Any]]:
        try:
            return self._client.select(table, list(params))
        except (httpx.HTTPError, RuntimeError) as exc:
            raise CatalogUnavailable(f"{table} lookup failed: {exc}") from exc


__all__ = ["PostgrestClient", "RestConfig", "RestProgramCatalog", "SCHOOL_EMBED"]
