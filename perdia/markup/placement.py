"""Insert rendered shortcodes into article HTML at named positions."""

from __future__ import annotations

import re
from typing import Dict

AFTER_INTRO = "after_intro"
MID_CONTENT = "mid_content"
PRE_CONCLUSION = "pre_conclusion"

SLOT_POSITIONS: Dict[str, str] = {
    "after_intro": AFTER_INTRO,
    "mid_article": MID_CONTENT,
    "near_conclusion": PRE_CONCLUSION,
}

_H2_BLOCK_RE = re.compile(r"<h2[^>]*>.*?</h2>", re.IGNORECASE | re.DOTALL)
_PARAGRAPH_END = "</p>"


def position_for_slot(slot_name: str) -> str:
    """Map a slot name to an insertion position; unmapped names are used as-is."""
    return SLOT_POSITIONS.get(slot_name, slot_name)


def wrap_block(shortcode: str) -> str:
    return f'\n<p class="monetization-block">{shortcode}</p>\n'


def _insert_at(content: str, index: int, block: str) -> str:
    return content[:index] + block + content[index:]


def insert_shortcode(content: str, shortcode: str, position: str = AFTER_INTRO) -> str:
    if not content or not shortcode:
        return content
    block = wrap_block(shortcode)

    if position == AFTER_INTRO:
        first_end = content.find(_PARAGRAPH_END)
        if first_end == -1:
            return block + content
        return _insert_at(content, first_end + len(_PARAGRAPH_END), block)

    if position == MID_CONTENT:
        headings = list(_H2_BLOCK_RE.finditer(content))
        if len(headings) >= 2:
            return _insert_at(content, headings[len(headings) // 2].end(), block)
        next_end = content.find(_PARAGRAPH_END, len(content) // 2)
        if next_end != -1:
            return _insert_at(content, next_end + len(_PARAGRAPH_END), block)
        return content + block

    if position == PRE_CONCLUSION:
        first_h2 = content.find("<h2")
        last_h2 = content.rfind("<h2")
        if last_h2 > 0 and last_h2 != first_h2:
            return _insert_at(content, last_h2, block)
        last_end = content.rfind(_PARAGRAPH_END)
        if last_end != -1:
            return _insert_at(content, last_end + len(_PARAGRAPH_END), block)
        return content + block

    return content + block
