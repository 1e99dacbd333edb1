"""Detection of the tag that switches a document into card view"""

import logging
import re


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---', re.DOTALL)


def has_tag(content: str, tag: str = 'memos') -> bool:
    """True if the frontmatter lists tag under a tags field, or '#tag' appears anywhere."""
    if m := FRONTMATTER_RE.match(content):
        header = m.group(1)
        if tag in header and ('tags:' in header or 'tag:' in header):
            logger.debug("Found %r in frontmatter", tag)
            return True
    if f"#{tag}" in content:
        logger.debug("Found inline #%s", tag)
        return True
    return False
