"""Compliance rules for rendered article content."""

from .rules import (
    APPROVED_EXTERNAL_DOMAINS,
    BLOCKED_DOMAINS,
    PUBLISHER_DOMAINS,
    ComplianceFinding,
    is_approved_external_domain,
    is_blocked_domain,
)
from .validator import ComplianceReport, ComplianceValidator

__all__ = [
    "APPROVED_EXTERNAL_DOMAINS",
    "BLOCKED_DOMAINS",
    "ComplianceFinding",
    "ComplianceReport",
    "ComplianceValidator",
    "PUBLISHER_DOMAINS",
    "is_approved_external_domain",
    "is_blocked_domain",
]
