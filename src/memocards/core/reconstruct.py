"""Block list to markdown text: the inverse of the block parser"""

import logging
import random
import string
import time

from memocards.core.models import Block, BlockType


logger = logging.getLogger(__name__)

DRAFT_FLAG = '%%quickadd-draft%%'
_BASE36 = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    """Lowercase base-36 encoding of a non-negative integer."""
    if n == 0:
        return '0'
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return ''.join(reversed(digits))


def generate_block_id() -> str:
    """Return '<base36 ms timestamp>-<5 random base36 chars>'."""
    stamp = _base36(int(time.time() * 1000))
    suffix = ''.join(random.choices(_BASE36, k=5))
    return f"{stamp}-{suffix}"


def section_heading_line(block: Block) -> str:
    """Build the '## ' line of a section from its heading text and metadata fields."""
    heading_text = block.content.partition('\n\n')[0]
    parts = ['##']
    if block.checked is not None:
        parts.append('[x]' if block.checked else '[ ]')
    parts.append(heading_text)
    parts.append(f"^{block.id}")
    if block.collapsed is not None:
        parts.append(f"[collapsed:: {'true' if block.collapsed else 'false'}]")
    if block.is_draft:
        parts.append(DRAFT_FLAG)
    return ' '.join(parts)


def render_block(block: Block, with_metadata: bool = True) -> str:
    """Render one block back to markdown.

    with_metadata=False gives the display form used by cards: a section is
    rendered as '## <content>' without checkbox, id, or flags, and no id is
    assigned. Otherwise a section without an id gets a fresh one stored on
    the block.
    """
    if block.type == BlockType.heading:
        level = block.level or 1
        if level == 2 and with_metadata:
            if not block.id:
                block.id = generate_block_id()
                logger.debug("Assigned block id %s", block.id)
            body = block.content.partition('\n\n')[2]
            line = section_heading_line(block)
            return f"{line}\n\n{body}" if body else line
        return f"{'#' * level} {block.content}"

    if block.type == BlockType.code_block:
        return f"```{block.language or ''}\n{block.content}\n```"
    if block.type == BlockType.blockquote:
        return '\n'.join(f"> {line}" for line in block.content.split('\n'))
    if block.type == BlockType.divider:
        return '---'
    return block.content


def reconstruct_markdown(blocks: list[Block], frontmatter: str = '') -> str:
    """Join rendered blocks with blank lines, prepend frontmatter, end with one newline.

    Sections lacking an id are assigned one in place; the new ids are
    visible on the passed blocks after the call.
    """
    body = '\n\n'.join(render_block(b) for b in blocks)
    result = frontmatter + body if frontmatter else body
    if not result:
        return result
    return result.rstrip('\n') + '\n'
