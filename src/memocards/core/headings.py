"""Heading-level normalization for free text embedded as a section body"""

import logging
import re


logger = logging.getLogger(__name__)

SECTION_BODY_MIN_LEVEL = 3
MAX_LEVEL = 6

_HEADING_RE = re.compile(r'^(\s*)(#{1,6})(\s.*)$')


def min_heading_level(text: str) -> int | None:
    """Return the smallest heading level used in text, or None without headings."""
    levels = [len(m.group(2)) for line in text.split('\n') if (m := _HEADING_RE.match(line))]
    return min(levels) if levels else None


def adjust_heading_levels(text: str) -> str:
    """Shift headings so the shallowest becomes H3; anything pushed past H6 becomes plain text.

    Keeps user-written '#'/'##' lines from being read back as section
    boundaries once the text is stored under a '## ' heading.
    """
    min_level = min_heading_level(text)
    if min_level is None:
        return text
    shift = max(0, SECTION_BODY_MIN_LEVEL - min_level)
    if shift == 0:
        return text

    logger.debug("Shifting headings by %d (min level %d)", shift, min_level)
    lines = []
    for line in text.split('\n'):
        m = _HEADING_RE.match(line)
        if not m:
            lines.append(line)
            continue
        level = len(m.group(2)) + shift
        if level > MAX_LEVEL:
            lines.append(m.group(1) + m.group(3).strip())
        else:
            lines.append(m.group(1) + '#' * level + m.group(3))
    return '\n'.join(lines)
