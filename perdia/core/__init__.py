"""
Configuration and audit utilities shared by the engine, the backfill driver and the CLI.
"""

from .config import (
    BackfillConfig,
    CatalogConfig,
    ComplianceConfig,
    EngineConfig,
    MonetizationSettings,
    RendererConfig,
    load_settings,
    merge_engine_config,
)
from .provenance import MonetizationEvent, ProvenanceLogger

__all__ = [
    "BackfillConfig",
    "CatalogConfig",
    "ComplianceConfig",
    "EngineConfig",
    "MonetizationEvent",
    "MonetizationSettings",
    "ProvenanceLogger",
    "RendererConfig",
    "load_settings",
    "merge_engine_config",
]
