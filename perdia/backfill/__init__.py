"""Batch monetization of existing articles."""

from .repository import (
    Article,
    ArticleRepository,
    PlacementRecord,
    RepositoryError,
    RestArticleRepository,
    SQLiteArticleRepository,
)
from .runner import LEGACY_ARTICLE_NOTE, ArticleOutcome, BackfillRunner, BackfillSummary

__all__ = [
    "Article",
    "ArticleOutcome",
    "ArticleRepository",
    "BackfillRunner",
    "BackfillSummary",
    "LEGACY_ARTICLE_NOTE",
    "PlacementRecord",
    "RepositoryError",
    "RestArticleRepository",
    "SQLiteArticleRepository",
]
