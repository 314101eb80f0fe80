"""
Program catalog: typed records, the ``ProgramCatalog`` protocol and its SQLite/HTTP backends.
"""

from .accessor import (
    CatalogResult,
    CatalogUnavailable,
    DEFAULT_QUERY_LIMIT,
    ProgramCatalog,
    ProgramQuery,
    SQLiteProgramCatalog,
)
from .models import CategoryEntry, DegreeLevel, Institution, Program
from .rest import PostgrestClient, RestConfig, RestProgramCatalog
from .storage import CatalogStore

__all__ = [
    "CatalogResult",
    "CatalogStore",
    "CatalogUnavailable",
    "CategoryEntry",
    "DEFAULT_QUERY_LIMIT",
    "DegreeLevel",
    "Institution",
    "PostgrestClient",
    "Program",
    "ProgramCatalog",
    "ProgramQuery",
    "RestConfig",
    "RestProgramCatalog",
    "SQLiteProgramCatalog",
]
