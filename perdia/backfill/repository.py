"""Article storage used by the backfill driver."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from perdia.catalog.rest import PostgrestClient
from perdia.catalog.storage import CatalogStore

LOGGER = logging.getLogger("perdia.backfill.repository")


class RepositoryError(RuntimeError):
    """Reading or writing articles failed."""


class Article(BaseModel):
    id: str
    title: Optional[str] = None
    seo_title: Optional[str] = None
    content: str = ""
    status: str = "idea"
    article_type: Optional[str] = None
    risk_level: Optional[str] = None
    quality_score_details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("content", mode="before")
    @classmethod
    def default_content(cls, value: Any) -> str:
        return value or ""

    @field_validator("quality_score_details", mode="before")
    @classmethod
    def decode_details(cls, value: Any) -> Dict[str, Any]:
        if value in (None, ""):
            return {}
        if isinstance(value, str):
            decoded = json.loads(value)
            return decoded if isinstance(decoded, dict) else {}
        return value

    @property
    def display_title(self) -> str:
        return self.title or self.seo_title or self.id


class PlacementRecord(BaseModel):
    """One rendered slot persisted against an article."""

    article_id: str
    category_id: int
    concentration_id: int
    level_code: Optional[int] = None
    position_in_article: str = "after_intro"
    shortcode_output: str
    program_ids: List[str] = Field(default_factory=list)


class ArticleRepository(Protocol):
    def list_articles(self, statuses: Sequence[str], limit: Optional[int] = None) -> List[Article]:
        ...

    def update_article(
        self,
        article_id: str,
        *,
        content: str,
        status: Optional[str] = None,
        risk_level: Optional[str] = None,
        quality_score_details: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...

    def save_monetization(self, article_id: str, content: str, placements: Sequence[PlacementRecord]) -> None:
        """Persist rendered placements together with the updated article content."""
        ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


_PLACEMENT_UPSERT = (
    "INSERT INTO article_monetization (article_id, category_id, concentration_id, level_code,"
    " position_in_article, shortcode_output, program_ids) VALUES (?, ?, ?, ?, ?, ?, ?)"
    " ON CONFLICT(article_id, position_in_article) DO UPDATE SET"
    " category_id = excluded.category_id, concentration_id = excluded.concentration_id,"
    " level_code = excluded.level_code, shortcode_output = excluded.shortcode_output,"
    " program_ids = excluded.program_ids"
)


def _placement_params(record: PlacementRecord) -> tuple:
    return (
        record.article_id,
        record.category_id,
        record.concentration_id,
        record.level_code,
        record.position_in_article,
        record.shortcode_output,
        json.dumps(record.program_ids),
    )


class SQLiteArticleRepository:
    """Articles stored in the same SQLite file as the catalog."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def list_articles(self, statuses: Sequence[str], limit: Optional[int] = None) -> List[Article]:
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)
        sql = f"SELECT * FROM articles WHERE status IN ({placeholders}) ORDER BY created_at ASC, id ASC"
        params: List[Any] = list(statuses)
        if limit:
            sql += " LIMIT ?"
            params.append(limit)
        try:
            rows = self.store.query(sql, tuple(params))
            return [Article.model_validate(dict(row)) for row in rows]
        except (sqlite3.Error, ValidationError, ValueError) as exc:
            raise RepositoryError(f"listing articles failed: {exc}") from exc

    def get_article(self, article_id: str) -> Optional[Article]:
        try:
            rows = self.store.query("SELECT * FROM articles WHERE id = ?", (article_id,))
        except sqlite3.Error as exc:
            raise RepositoryError(f"reading article {article_id} failed: {exc}") from exc
        return Article.model_validate(dict(rows[0])) if rows else None

    def add_article(self, article: Article) -> None:
        self._execute(
            "INSERT OR REPLACE INTO articles (id, title, seo_title, content, status, article_type, risk_level,"
            " quality_score_details) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                article.id,
                article.title,
                article.seo_title,
                article.content,
                article.status,
                article.article_type,
                article.risk_level,
                json.dumps(article.quality_score_details),
            ),
        )

    def update_article(
        self,
        article_id: str,
        *,
        content: str,
        status: Optional[str] = None,
        risk_level: Optional[str] = None,
        quality_score_details: Optional[Dict[str, Any]] = None,
    ) -> None:
        assignments = ["content = ?", "updated_at = ?"]
        params: List[Any] = [content, _now()]
        if status is not None:
            assignments.append("status = ?")
            params.append(status)
        if risk_level is not None:
            assignments.append("risk_level = ?")
            params.append(risk_level)
        if quality_score_details is not None:
            assignments.append("quality_score_details = ?")
            params.append(json.dumps(quality_score_details))
        params.append(article_id)
        self._execute(f"UPDATE articles SET {', '.join(assignments)} WHERE id = ?", tuple(params))

    def save_monetization(self, article_id: str, content: str, placements: Sequence[PlacementRecord]) -> None:
        try:
            with self.store.transaction() as con:
                con.executemany(_PLACEMENT_UPSERT, [_placement_params(record) for record in placements])
                cursor = con.execute(
                    "UPDATE articles SET content = ?, updated_at = ? WHERE id = ?",
                    (content, _now(), article_id),
                )
                if cursor.rowcount == 0:
                    raise RepositoryError(f"article {article_id} does not exist")
        except sqlite3.Error as exc:
            raise RepositoryError(f"saving monetization for {article_id} failed: {exc}") from exc

    def list_placements(self, article_id: str) -> List[PlacementRecord]:
        rows = self.store.query(
            "SELECT * FROM article_monetization WHERE article_id = ? ORDER BY id",
            (article_id,),
        )
        return [
            PlacementRecord(
                article_id=row["article_id"],
                category_id=row["category_id"],
                concentration_id=row["concentration_id"],
                level_code=row["level_code"],
                position_in_article=row["position_in_article"],
                shortcode_output=row["shortcode_output"] or "",
                program_ids=json.loads(row["program_ids"] or "[]"),
            )
            for row in rows
        ]

    def _execute(self, sql: str, params: tuple) -> None:
        try:
            self.store.execute(sql, params)
        except sqlite3.Error as exc:
            raise RepositoryError(f"article write failed: {exc}") from exc


class RestArticleRepository:
    """Articles behind the hosted PostgREST endpoint."""

    def __init__(self, client: PostgrestClient) -> None:
        self._client = client

    def list_articles(self, statuses: Sequence[str], limit: Optional[int] = None) -> List[Article]:
        if not statuses:
            return []
        params = [
            ("select", "*"),
            ("status", f"in.({','.join(statuses)})"),
            ("order", "created_at.asc"),
        ]
        if limit:
            params.append(("limit", str(limit)))
        try:
            rows = self._client.select("articles", params)
            return [Article.model_validate(row) for row in rows]
        except (httpx.HTTPError, RuntimeError, ValidationError, ValueError) as exc:
            raise RepositoryError(f"listing articles failed: {exc}") from exc

    def update_article(
        self,
        article_id: str,
        *,
        content: str,
        status: Optional[str] = None,
        risk_level: Optional[str] = None,
        quality_score_details: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload: Dict[str, Any] = {"content": content, "updated_at": _now()}
        if status is not None:
            payload["status"] = status
        if risk_level is not None:
            payload["risk_level"] = risk_level
        if quality_score_details is not None:
            payload["quality_score_details"] = quality_score_details
        try:
            self._client.update("articles", [("id", f"eq.{article_id}")], payload)
        except httpx.HTTPError as exc:
            raise RepositoryError(f"updating article {article_id} failed: {exc}") from exc

    def save_monetization(self, article_id: str, content: str, placements: Sequence[PlacementRecord]) -> None:
        # Placements are upserted first; the content write is what marks the article as monetized.
        for record in placements:
            try:
                self._client.upsert(
                    "article_monetization",
                    record.model_dump(),
                    on_conflict="article_id,position_in_article",
                )
            except httpx.HTTPError as exc:
                raise RepositoryError(f"saving placement for {article_id} failed: {exc}") from exc
        self.update_article(article_id, content=content)
