"""
Generation and detection of the publisher's shortcode markup.

Three outer tags are recognised: ``su_ge-picks`` (program tables), ``su_ge-cta``
(school/degree/internal/external links) and ``su_ge-qdf`` (the Quick Degree Find
widget). Everything that reads or writes these tags goes through this module.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from perdia.core.config import DEFAULT_LEVEL_SLUGS

PICKS_TAG = "su_ge-picks"
CTA_TAG = "su_ge-cta"
QDF_TAG = "su_ge-qdf"

ALLOWED_SHORTCODE_TAGS: tuple[str, ...] = (PICKS_TAG, CTA_TAG, QDF_TAG)
LEGACY_SHORTCODE_TAGS: tuple[str, ...] = (
    "degree_table",
    "degree_offer",
    "ge_monetization",
    "ge_internal_link",
    "ge_external_cited",
)

DEFAULT_PICKS_HEADER = "GetEducated's Picks"
DEFAULT_CTA_BUTTON = "View More Degrees"
DEFAULT_CTA_PREFIX = "/online-degrees/"

_FORBIDDEN_VALUE_CHARS = ('"', "[", "]")
_PARAM_RE = re.compile(r'([\w-]+)="([^"]*)"')
_KNOWN_TAG_RE = re.compile(
    r'\[(su_ge-picks|su_ge-cta|su_ge-qdf)((?:\s+[\w-]+="[^"]*")*)\s*\](?:\[/\1\])?',
    re.IGNORECASE,
)
_ANY_TAG_RE = re.compile(r"\[(/?)([\w-]+)([^\]]*)\]")
_ABSOLUTE_URL_RE = re.compile(r"^(?:https?:)?//", re.IGNORECASE)
_PUBLISHER_ORIGIN_RE = re.compile(r"^https?://(?:www\.)?geteducated\.com", re.IGNORECASE)


class MarkupError(ValueError):
    """A shortcode was requested with missing or unrepresentable parameters."""


class ShortcodeType(str, Enum):
    GE_PICKS = "ge_picks"
    GE_QDF = "ge_qdf"
    GE_CTA_SCHOOL = "ge_cta_school"
    GE_CTA_DEGREE = "ge_cta_degree"
    GE_CTA_INTERNAL = "ge_cta_internal"
    GE_CTA_EXTERNAL = "ge_cta_external"


MONETIZATION_TYPES = frozenset({ShortcodeType.GE_PICKS, ShortcodeType.GE_QDF})


@dataclass(frozen=True)
class ParsedShortcode:
    type: Optional[ShortcodeType]
    tag: str
    params: Dict[str, str]
    raw: str
    position: int = 0
    is_valid: bool = False


@dataclass(frozen=True)
class ShortcodeToken:
    """Any bracketed ``[tag ...]`` or ``[/tag]`` occurrence, allowlisted or not."""

    raw: str
    tag: str
    is_closing: bool
    attributes: str
    position: int


@dataclass
class MonetizationCheck:
    has_monetization: bool
    monetization_count: int
    picks_count: int
    qdf_count: int
    legacy_count: int
    shortcodes: List[ParsedShortcode] = field(default_factory=list)
    recommendation: Optional[str] = None

    @property
    def is_compliant(self) -> bool:
        return self.monetization_count >= 1


# --------------------------------------------------------------------------- generation


def slugify(text: str) -> str:
    lowered = re.sub(r"\s+", "-", text.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", lowered)


def build_cta_url(
    level_code: Optional[int],
    category: Optional[str],
    concentration: Optional[str],
    *,
    prefix: str = DEFAULT_CTA_PREFIX,
    level_slugs: Mapping[int, str] | None = None,
) -> str:
    """``/online-degrees/<level>/<category>/<concentration>/``, skipping unknown parts."""
    slugs = DEFAULT_LEVEL_SLUGS if level_slugs is None else level_slugs
    url = prefix if prefix.endswith("/") else prefix + "/"
    parts = [slugs.get(level_code, "") if level_code else ""]
    parts.extend(slugify(label) if label else "" for label in (category, concentration))
    for part in parts:
        if part:
            url += f"{part}/"
    return url


def _check_value(name: str, value: object) -> str:
    text = "" if value is None else str(value)
    if not text:
        raise MarkupError(f"{name} is required")
    for char in _FORBIDDEN_VALUE_CHARS:
        if char in text:
            raise MarkupError(f"{name} may not contain {char!r}: {text!r}")
    return text


def _render(tag: str, params: Sequence[tuple[str, object]]) -> str:
    attributes = " ".join(f'{name}="{_check_value(name, value)}"' for name, value in params)
    return f"[{tag} {attributes}][/{tag}]"


def generate_picks_shortcode(
    category: int | str,
    concentration: int | str,
    level: int | str | None = None,
    *,
    header: str = DEFAULT_PICKS_HEADER,
    cta_button: str = DEFAULT_CTA_BUTTON,
    cta_url: str | None = None,
) -> str:
    params: List[tuple[str, object]] = [("category", category), ("concentration", concentration)]
    if level is not None and level != "":
        params.append(("level", level))
    params.extend([("header", header), ("cta-button", cta_button)])
    if cta_url:
        params.append(("cta-url", cta_url))
    return _render(PICKS_TAG, params)


def generate_qdf_shortcode(widget_type: str = "simple", header: str = "Find Your Degree") -> str:
    return _render(QDF_TAG, [("type", widget_type), ("header", header)])


def generate_school_link(school: int | str, cta_copy: str) -> str:
    return _render(CTA_TAG, [("type", "school"), ("school", school), ("cta-copy", cta_copy)])


def generate_degree_link(school: int | str, degree: int | str, cta_copy: str) -> str:
    return _render(
        CTA_TAG,
        [("type", "degree"), ("school", school), ("degree", degree), ("cta-copy", cta_copy)],
    )


def generate_internal_link(url: str, cta_copy: str) -> str:
    """Internal link; absolute publisher URLs are reduced to their path."""
    path = _PUBLISHER_ORIGIN_RE.sub("", _check_value("url", url)) or "/"
    if _ABSOLUTE_URL_RE.match(path):
        raise MarkupError(f"internal links must be relative to the publisher site: {url!r}")
    return _render(CTA_TAG, [("type", "internal"), ("url", path), ("cta-copy", cta_copy)])


def generate_external_link(url: str, cta_copy: str) -> str:
    if not _ABSOLUTE_URL_RE.match(_check_value("url", url)):
        raise MarkupError(f"external links must be absolute: {url!r}")
    return _render(
        CTA_TAG,
        [("type", "external"), ("url", url), ("target", "_blank"), ("cta-copy", cta_copy)],
    )


# --------------------------------------------------------------------------- detection


def _parse_params(attributes: str) -> Dict[str, str]:
    return {name.lower(): value for name, value in _PARAM_RE.findall(attributes)}


def _classify(tag: str, params: Mapping[str, str]) -> Optional[ShortcodeType]:
    if tag == PICKS_TAG:
        return ShortcodeType.GE_PICKS
    if tag == QDF_TAG:
        return ShortcodeType.GE_QDF
    if params.get("school") and params.get("degree"):
        return ShortcodeType.GE_CTA_DEGREE
    if params.get("school"):
        return ShortcodeType.GE_CTA_SCHOOL
    url = params.get("url")
    if url:
        return ShortcodeType.GE_CTA_EXTERNAL if _ABSOLUTE_URL_RE.match(url) else ShortcodeType.GE_CTA_INTERNAL
    return None


def _is_complete(kind: Optional[ShortcodeType], params: Mapping[str, str]) -> bool:
    if kind is None:
        return False
    if kind is ShortcodeType.GE_PICKS:
        return bool(params.get("category") and params.get("concentration"))
    return bool(params.get("type"))


def _from_match(match: re.Match[str]) -> ParsedShortcode:
    tag = match.group(1).lower()
    params = _parse_params(match.group(2))
    kind = _classify(tag, params)
    return ParsedShortcode(
        type=kind,
        tag=tag,
        params=params,
        raw=match.group(0),
        position=match.start(),
        is_valid=_is_complete(kind, params),
    )


def parse_shortcode(raw: str | None) -> ParsedShortcode:
    """Parse a single tag; anything unrecognised comes back with ``is_valid=False``."""
    text = (raw or "").strip()
    match = _KNOWN_TAG_RE.fullmatch(text)
    if match is None:
        return ParsedShortcode(type=None, tag="", params={}, raw=raw or "")
    return _from_match(match)


def extract_shortcodes(content: str | None) -> List[ParsedShortcode]:
    return [_from_match(match) for match in _KNOWN_TAG_RE.finditer(content or "")]


def extract_all_shortcode_like_tokens(content: str | None) -> List[ShortcodeToken]:
    return [
        ShortcodeToken(
            raw=match.group(0),
            tag=match.group(2).lower(),
            is_closing=match.group(1) == "/",
            attributes=match.group(3).strip(),
            position=match.start(),
        )
        for match in _ANY_TAG_RE.finditer(content or "")
    ]


def find_unknown_shortcodes(content: str | None, extra_allowed: Iterable[str] = ()) -> List[ShortcodeToken]:
    """Tokens whose tag is neither allowlisted nor a known legacy tag."""
    known = {tag.lower() for tag in (*ALLOWED_SHORTCODE_TAGS, *LEGACY_SHORTCODE_TAGS, *extra_allowed)}
    return [token for token in extract_all_shortcode_like_tokens(content) if token.tag not in known]


def find_legacy_shortcodes(content: str | None) -> List[ShortcodeToken]:
    return [
        token
        for token in extract_all_shortcode_like_tokens(content)
        if token.tag in LEGACY_SHORTCODE_TAGS and not token.is_closing
    ]


def has_monetization(content: str | None) -> bool:
    return any(code.type in MONETIZATION_TYPES and code.is_valid for code in extract_shortcodes(content))


def check_monetization_compliance(content: str | None) -> MonetizationCheck:
    shortcodes = [code for code in extract_shortcodes(content) if code.type in MONETIZATION_TYPES]
    picks = sum(1 for code in shortcodes if code.type is ShortcodeType.GE_PICKS)
    legacy = len(find_legacy_shortcodes(content))

    recommendation: Optional[str] = None
    if not shortcodes and legacy:
        recommendation = f"Replace {legacy} legacy shortcode(s) with [{PICKS_TAG}] or [{QDF_TAG}]"
    elif not shortcodes:
        recommendation = f"Add at least one [{PICKS_TAG}] block"
    elif legacy:
        recommendation = f"Remove {legacy} legacy shortcode(s) alongside the current blocks"

    return MonetizationCheck(
        has_monetization=bool(shortcodes),
        monetization_count=len(shortcodes),
        picks_count=picks,
        qdf_count=len(shortcodes) - picks,
        legacy_count=legacy,
        shortcodes=shortcodes,
        recommendation=recommendation,
    )
