"""Fixed domain lists and the finding record shared by all compliance rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from perdia.core.config import Severity

BLOCKED_DOMAINS: tuple[str, ...] = (
    "onlineu.com",
    "usnews.com",
    "niche.com",
    "collegeboard.org",
    "petersons.com",
    "princetonreview.com",
    "cappex.com",
    "collegedata.com",
    "affordablecollegesonline.com",
    "toponlinecollegesusa.com",
    "bestcolleges.com",
    "collegeconfidential.com",
    "collegeraptor.com",
    "collegesimply.com",
    "graduateguide.com",
    "gradschools.com",
    "collegexpress.com",
)

APPROVED_EXTERNAL_DOMAINS: tuple[str, ...] = (
    "bls.gov",
    "ed.gov",
    "nces.ed.gov",
    "careeronestop.org",
    "onetcenter.org",
    "studentaid.gov",
    "fafsa.gov",
    "chea.org",
    "abet.org",
    "cacrep.org",
    "ccne-accreditation.org",
    "cswe.org",
    "apa.org",
    "nasw.org",
    "nursingworld.org",
)

PUBLISHER_DOMAINS: tuple[str, ...] = ("geteducated.com",)

BLOCKING = "blocking"
MAJOR = "major"
MINOR = "minor"


@dataclass(frozen=True)
class ComplianceFinding:
    rule: str
    message: str
    severity: Severity
    domain: Optional[str] = None
    count: Optional[int] = None
    suggestion: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @property
    def is_blocking(self) -> bool:
        return self.severity == BLOCKING

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"rule": self.rule, "message": self.message, "severity": self.severity}
        for key in ("domain", "count", "suggestion"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.tags:
            payload["tags"] = list(self.tags)
        return payload


def blocked_domain_pattern(domain: str) -> re.Pattern[str]:
    """Links to ``domain`` over any scheme (or none), any subdomain, any case."""
    return re.compile(rf"(?:https?:)?//([\w.-]*\.)?{re.escape(domain)}(?![\w-])", re.IGNORECASE)


_BLOCKED_PATTERNS: Dict[str, re.Pattern[str]] = {domain: blocked_domain_pattern(domain) for domain in BLOCKED_DOMAINS}


def host_of(url: str | None) -> str:
    """Lower-cased host of ``url``; scheme-less inputs are treated as host-first."""
    text = (url or "").strip()
    if not text:
        return ""
    if "//" not in text:
        text = "//" + text
    try:
        host = urlsplit(text).hostname or ""
    except ValueError:
        return ""
    return host.lower().rstrip(".")


def host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def _matches_any(url: str | None, domains: tuple[str, ...]) -> bool:
    host = host_of(url)
    return bool(host) and any(host_matches(host, domain) for domain in domains)


def is_blocked_domain(url: str | None) -> bool:
    return _matches_any(url, BLOCKED_DOMAINS)


def is_approved_external_domain(url: str | None) -> bool:
    return _matches_any(url, APPROVED_EXTERNAL_DOMAINS)


def is_publisher_domain(url: str | None) -> bool:
    return _matches_any(url, PUBLISHER_DOMAINS)


def is_edu_domain(url: str | None) -> bool:
    host = host_of(url)
    return host == "edu" or host.endswith(".edu")


def blocked_pattern(domain: str) -> re.Pattern[str]:
    return _BLOCKED_PATTERNS.get(domain) or blocked_domain_pattern(domain)
