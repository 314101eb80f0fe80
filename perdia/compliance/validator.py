"""Business-rule checks over rendered article content and engine selections."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from perdia.core.config import ComplianceConfig
from perdia.markup.shortcodes import (
    ShortcodeType,
    extract_shortcodes,
    find_legacy_shortcodes,
    find_unknown_shortcodes,
)
from perdia.monetization.models import MonetizationResult, SlotResult

from .rules import (
    BLOCKED_DOMAINS,
    BLOCKING,
    MAJOR,
    MINOR,
    ComplianceFinding,
    blocked_pattern,
    host_of,
    is_approved_external_domain,
    is_blocked_domain,
    is_edu_domain,
    is_publisher_domain,
)

LOGGER = logging.getLogger("perdia.compliance")

_EDU_HREF_RE = re.compile(r"""href=["']https?://[^/"']*\.edu(?:[/:?#][^"']*)?["']""", re.IGNORECASE)
_ABSOLUTE_HREF_RE = re.compile(r"""href=["']((?:https?:)?//[^"']+)["']""", re.IGNORECASE)
_COST_RE = re.compile(r"\$\d[\d,]*(?:\.\d{2})?")


@dataclass
class ComplianceReport:
    """All findings for one piece of content; only blocking findings make it invalid."""

    findings: List[ComplianceFinding] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(finding.is_blocking for finding in self.findings)

    @property
    def blocking_findings(self) -> List[ComplianceFinding]:
        return [finding for finding in self.findings if finding.is_blocking]

    @property
    def warnings(self) -> List[ComplianceFinding]:
        return [finding for finding in self.findings if not finding.is_blocking]

    def by_rule(self, rule: str) -> List[ComplianceFinding]:
        return [finding for finding in self.findings if finding.rule == rule]


SelectionInput = Optional[Union[MonetizationResult, Sequence[SlotResult]]]


class ComplianceValidator:
    def __init__(self, config: ComplianceConfig | None = None) -> None:
        self.config = config or ComplianceConfig()
        terms = [self.config.publisher_name, *self.config.attribution_terms]
        self._attribution_re = re.compile("|".join(re.escape(term) for term in terms if term), re.IGNORECASE)

    def validate(self, selection: SelectionInput, content: str | None) -> ComplianceReport:
        text = content or ""
        findings: List[ComplianceFinding] = []
        findings.extend(self.check_blocked_domains(text))
        findings.extend(self.check_edu_links(text))
        findings.extend(self.check_sponsored_priority(_slots_of(selection)))
        findings.extend(self.check_cost_attribution(text))
        if self.config.flag_unapproved_external_links:
            findings.extend(self.check_external_links(text))
        findings.extend(self.check_shortcodes(text))

        report = ComplianceReport(findings=findings)
        if not report.is_valid:
            LOGGER.info(
                "Content failed compliance: %s",
                ", ".join(sorted({finding.rule for finding in report.blocking_findings})),
            )
        return report

    def check_blocked_domains(self, content: str) -> List[ComplianceFinding]:
        if not content:
            return []
        return [
            ComplianceFinding(
                rule="blocked_domain",
                message=f"Content links to blocked competitor domain: {domain}",
                severity=BLOCKING,
                domain=domain,
                suggestion="Remove the link or replace it with a GetEducated page",
            )
            for domain in BLOCKED_DOMAINS
            if blocked_pattern(domain).search(content)
        ]

    def check_edu_links(self, content: str) -> List[ComplianceFinding]:
        count = len(_EDU_HREF_RE.findall(content))
        if not count:
            return []
        return [
            ComplianceFinding(
                rule="edu_direct_link",
                message=f"Content contains {count} direct .edu link(s)",
                severity=MAJOR,
                count=count,
                suggestion="Link to the school's GetEducated page with a school link shortcode",
            )
        ]

    def check_sponsored_priority(self, slots: Iterable[SlotResult]) -> List[ComplianceFinding]:
        return [
            ComplianceFinding(
                rule="sponsored_priority",
                message=f'Slot "{slot.name}" has no sponsored programs',
                severity=MINOR,
                count=slot.program_count,
                tags=[slot.name],
            )
            for slot in slots
            if slot.program_count > 0 and not slot.has_sponsored
        ]

    def check_cost_attribution(self, content: str) -> List[ComplianceFinding]:
        matches = list(_COST_RE.finditer(content))
        if not matches:
            return []
        window = self.config.attribution_window
        if window is None:
            unattributed = [] if self._attribution_re.search(content) else matches
        else:
            unattributed = [
                match
                for match in matches
                if not self._attribution_re.search(content, max(0, match.start() - window), match.end() + window)
            ]
        if not unattributed:
            return []
        return [
            ComplianceFinding(
                rule="cost_attribution",
                message=f"Content mentions {len(unattributed)} cost figure(s) without {self.config.publisher_name} attribution",
                severity=MINOR,
                count=len(unattributed),
                suggestion=f'Add "according to {self.config.publisher_name} ranking reports" or similar attribution',
            )
        ]

    def check_external_links(self, content: str) -> List[ComplianceFinding]:
        urls = [match.group(1) for match in _ABSOLUTE_HREF_RE.finditer(content)]
        urls.extend(
            code.params["url"]
            for code in extract_shortcodes(content)
            if code.type is ShortcodeType.GE_CTA_EXTERNAL and code.params.get("url")
        )
        hosts = [
            host_of(url)
            for url in urls
            if not (
                is_publisher_domain(url)
                or is_approved_external_domain(url)
                or is_blocked_domain(url)
                or is_edu_domain(url)
            )
        ]
        hosts = [host for host in hosts if host]
        if not hosts:
            return []
        return [
            ComplianceFinding(
                rule="unapproved_external_link",
                message=f"Content links to {len(hosts)} external source(s) outside the approved citation list",
                severity=MINOR,
                count=len(hosts),
                suggestion="Cite government or accreditation sources instead",
                tags=sorted(set(hosts)),
            )
        ]

    def check_shortcodes(self, content: str) -> List[ComplianceFinding]:
        findings: List[ComplianceFinding] = []
        unknown = find_unknown_shortcodes(content)
        if unknown:
            tags = sorted({token.tag for token in unknown})
            findings.append(
                ComplianceFinding(
                    rule="unknown_shortcode",
                    message=f"Found {len(unknown)} unknown shortcode(s): {', '.join(tags)}",
                    severity=self.config.unknown_shortcode_severity,
                    count=len(unknown),
                    tags=tags,
                )
            )
        legacy = find_legacy_shortcodes(content)
        if legacy:
            tags = sorted({token.tag for token in legacy})
            findings.append(
                ComplianceFinding(
                    rule="legacy_shortcode",
                    message=f"Found {len(legacy)} legacy shortcode(s) needing migration: {', '.join(tags)}",
                    severity=self.config.legacy_shortcode_severity,
                    count=len(legacy),
                    suggestion="Replace with [su_ge-picks], [su_ge-cta] or [su_ge-qdf]",
                    tags=tags,
                )
            )
        return findings


def _slots_of(selection: SelectionInput) -> List[SlotResult]:
    if selection is None:
        return []
    if isinstance(selection, MonetizationResult):
        return list(selection.slots)
    return list(selection)
