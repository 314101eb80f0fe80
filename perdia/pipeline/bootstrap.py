"""Bootstrap helpers that wire settings, storage backends and the engine together."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

from perdia.backfill.repository import RestArticleRepository, SQLiteArticleRepository
from perdia.catalog.accessor import SQLiteProgramCatalog
from perdia.catalog.rest import PostgrestClient, RestConfig, RestProgramCatalog
from perdia.catalog.storage import CatalogStore
from perdia.compliance.validator import ComplianceValidator
from perdia.core.config import MonetizationSettings, load_settings
from perdia.core.provenance import MonetizationEvent, ProvenanceLogger
from perdia.monetization.engine import MonetizationEngine

from .context import RuntimeContext, RuntimePaths

DEFAULT_CONFIG_PATH = Path("config/monetization.yaml")
DEFAULT_OUTPUT_DIR = Path("outputs")
LOGGER = logging.getLogger("perdia.pipeline")


def _capture_env(keys: tuple[str, ...]) -> Dict[str, str]:
    """Names of the configured environment variables that are set; values are never recorded."""
    return {key: "set" for key in keys if os.getenv(key)}


def _build_backends(settings: MonetizationSettings) -> tuple[object, object]:
    catalog_cfg = settings.catalog
    if catalog_cfg.backend == "rest":
        api_key = os.getenv(catalog_cfg.api_key_env)
        if not api_key:
            LOGGER.warning("%s is not set; REST catalog requests will be anonymous", catalog_cfg.api_key_env)
        client = PostgrestClient(
            RestConfig(base_url=str(catalog_cfg.api_base), api_key=api_key),
            timeout=catalog_cfg.timeout_seconds,
        )
        return RestProgramCatalog(client), RestArticleRepository(client)

    store = CatalogStore(catalog_cfg.sqlite_path)
    return SQLiteProgramCatalog(store), SQLiteArticleRepository(store)


def bootstrap_runtime(
    config_path: Path | None = None,
    *,
    repo_root: Path | None = None,
    output_dir: Path | None = None,
    catalog_override: Path | None = None,
    enable_audit: bool = True,
) -> RuntimeContext:
    """
    Load ``.env`` and settings, then construct the engine and its collaborators.

    Parameters
    ----------
    config_path:
        Settings YAML. Defaults to ``config/monetization.yaml`` under ``repo_root``;
        built-in defaults are used when that file does not exist.
    repo_root:
        Root of the repository. Defaults to ``Path.cwd()``.
    output_dir:
        Directory for generated artifacts. Defaults to ``repo_root / 'outputs'``.
    catalog_override:
        SQLite catalog to use instead of ``catalog.sqlite_path``.
    enable_audit:
        Write backfill events to ``backfill.audit_log_path``.
    """

    repo_root = (repo_root or Path.cwd()).resolve()
    load_dotenv(repo_root / ".env")
    output_dir = (output_dir or (repo_root / DEFAULT_OUTPUT_DIR)).resolve()

    resolved_config = (config_path or repo_root / DEFAULT_CONFIG_PATH).expanduser().resolve()
    if resolved_config.exists():
        settings = load_settings(resolved_config, base_dir=repo_root)
    elif config_path is not None:
        raise FileNotFoundError(f"Settings file not found: {resolved_config}")
    else:
        LOGGER.debug("No settings file at %s; using defaults", resolved_config)
        settings = MonetizationSettings()
        catalog_cfg = settings.catalog.model_copy(update={"sqlite_path": output_dir / "catalog" / "catalog.sqlite"})
        backfill_cfg = settings.backfill.model_copy(update={"audit_log_path": output_dir / "backfill" / "events.jsonl"})
        settings = settings.model_copy(update={"catalog": catalog_cfg, "backfill": backfill_cfg})

    if catalog_override is not None:
        catalog_cfg = settings.catalog.model_copy(
            update={"backend": "sqlite", "sqlite_path": catalog_override.expanduser().resolve()}
        )
        settings = settings.model_copy(update={"catalog": catalog_cfg})

    catalog, articles = _build_backends(settings)
    engine = MonetizationEngine(catalog, settings.engine, settings.renderer)
    validator = ComplianceValidator(settings.compliance)

    provenance = None
    audit_path = settings.backfill.audit_log_path
    if enable_audit and audit_path is not None:
        provenance = ProvenanceLogger(audit_path)

    ctx = RuntimeContext(
        settings=settings,
        paths=RuntimePaths(repo_root=repo_root, output_dir=output_dir),
        catalog=catalog,
        engine=engine,
        validator=validator,
        articles=articles,
        provenance=provenance,
        env=_capture_env((settings.catalog.api_key_env,)),
    )
    if provenance is not None:
        provenance.log(
            MonetizationEvent(
                stage="bootstrap",
                message="Runtime configured",
                payload={"catalog_backend": settings.catalog.backend, "config_path": str(resolved_config)},
            )
        )
    return ctx
