"""Shortcode rendering, detection and placement."""

from .placement import SLOT_POSITIONS, insert_shortcode, position_for_slot
from .shortcodes import (
    ALLOWED_SHORTCODE_TAGS,
    LEGACY_SHORTCODE_TAGS,
    MarkupError,
    MonetizationCheck,
    ParsedShortcode,
    ShortcodeToken,
    ShortcodeType,
    build_cta_url,
    check_monetization_compliance,
    extract_all_shortcode_like_tokens,
    extract_shortcodes,
    find_legacy_shortcodes,
    find_unknown_shortcodes,
    generate_degree_link,
    generate_external_link,
    generate_internal_link,
    generate_picks_shortcode,
    generate_qdf_shortcode,
    generate_school_link,
    has_monetization,
    parse_shortcode,
    slugify,
)

__all__ = [
    "ALLOWED_SHORTCODE_TAGS",
    "LEGACY_SHORTCODE_TAGS",
    "MarkupError",
    "MonetizationCheck",
    "ParsedShortcode",
    "SLOT_POSITIONS",
    "ShortcodeToken",
    "ShortcodeType",
    "build_cta_url",
    "check_monetization_compliance",
    "extract_all_shortcode_like_tokens",
    "extract_shortcodes",
    "find_legacy_shortcodes",
    "find_unknown_shortcodes",
    "generate_degree_link",
    "generate_external_link",
    "generate_internal_link",
    "generate_picks_shortcode",
    "generate_qdf_shortcode",
    "generate_school_link",
    "has_monetization",
    "insert_shortcode",
    "parse_shortcode",
    "position_for_slot",
    "slugify",
]
