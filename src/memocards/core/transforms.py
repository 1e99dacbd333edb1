"""Document mutations as pure (text, operation) -> text transforms

Every transform parses the given text afresh, addresses blocks by their
index among non-empty blocks, and returns a Change, or None when the
operation is a no-op and nothing should be written.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, TypeVar

from memocards.core.headings import adjust_heading_levels
from memocards.core.models import Block, BlockType
from memocards.core.parse import parse_blocks, parse_document
from memocards.core.reconstruct import DRAFT_FLAG, generate_block_id, reconstruct_markdown
from memocards.core.utils.timestamps import DEFAULT_FORMAT, format_timestamp


logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class Change:
    """New document text plus what the coordinator needs to patch its cards."""
    text:          str
    block:         Optional[Block] = None   # block created or replaced
    index:         Optional[int] = None     # its non-empty index in the new text
    removed_index: Optional[int] = None     # index of a block dropped along the way


def _in_range(blocks: list, index: int) -> bool:
    return 0 <= index < len(blocks)


def _timestamp(now: Optional[datetime], fmt: str) -> str:
    return format_timestamp(now or datetime.now(), fmt)


def _append_raw(text: str, section: str) -> str:
    """Append a section after the existing text, leaving the existing bytes untouched."""
    if not text:
        return f"{section}\n"
    if not text.endswith('\n'):
        text += '\n'
    return f"{text}\n{section}\n"


def _section_block(heading: str, body: str, **fields) -> Block:
    """Build a section block straight from heading and body so no body line can split it."""
    lines = body.split('\n')
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    content = heading + ('\n\n' + '\n'.join(lines) if lines else '')
    return Block(type=BlockType.heading, level=2, content=content, **fields)


def _find_by_id(blocks: list[Block], block_id: Optional[str]) -> int:
    if not block_id:
        return -1
    return next((i for i, b in enumerate(blocks) if b.id == block_id), -1)


# --- per-section metadata ---

def set_collapsed(text: str, index: int, collapsed: bool) -> Optional[Change]:
    """Store the collapsed flag on the section at index."""
    doc = parse_document(text)
    blocks = doc.content_blocks()
    if not _in_range(blocks, index) or not blocks[index].is_section:
        return None
    blocks[index].collapsed = collapsed
    return Change(reconstruct_markdown(blocks, doc.frontmatter), blocks[index], index)


def set_checked(text: str, index: int, checked: Optional[bool] = None) -> Optional[Change]:
    """Set the checkbox of the section at index; None flips the current state."""
    doc = parse_document(text)
    blocks = doc.content_blocks()
    if not _in_range(blocks, index) or not blocks[index].is_section:
        return None
    block = blocks[index]
    block.checked = (not block.checked) if checked is None else checked
    return Change(reconstruct_markdown(blocks, doc.frontmatter), block, index)


# --- structure ---

def delete_block(text: str, index: int) -> Optional[Change]:
    doc = parse_document(text)
    blocks = doc.content_blocks()
    if not _in_range(blocks, index):
        return None
    removed = blocks.pop(index)
    return Change(reconstruct_markdown(blocks, doc.frontmatter), removed, removed_index=index)


def move_block(text: str, from_index: int, to_index: int) -> Optional[Change]:
    """Splice the block at from_index into position to_index."""
    if from_index == to_index:
        return None
    doc = parse_document(text)
    blocks = doc.content_blocks()
    if not _in_range(blocks, from_index) or not _in_range(blocks, to_index):
        return None
    moved = blocks.pop(from_index)
    blocks.insert(to_index, moved)
    logger.debug("Moved block %d -> %d", from_index, to_index)
    return Change(reconstruct_markdown(blocks, doc.frontmatter), moved, to_index)


def edit_block(text: str, index: int, new_text: str) -> Optional[Change]:
    """Replace the block at index with the first block parsed from new_text.

    A section keeps its id and checkbox through the edit, keeps its
    collapsed flag unless new_text states one, and always loses the draft flag.
    """
    doc = parse_document(text)
    blocks = doc.content_blocks()
    if not _in_range(blocks, index):
        return None
    parsed = [b for b in parse_blocks(new_text) if b.type != BlockType.empty]
    if not parsed:
        return None
    if len(parsed) > 1:
        logger.warning("Edit produced %d blocks; keeping only the first", len(parsed))

    existing, block = blocks[index], parsed[0]
    if block.is_section and existing.is_section:
        block.id = existing.id or block.id
        block.checked = existing.checked
        if block.collapsed is None:
            block.collapsed = existing.collapsed
    if existing.is_draft:
        logger.debug("Clearing draft flag on edited block %s", existing.id)
    block.is_draft = None

    blocks[index] = block
    return Change(reconstruct_markdown(blocks, doc.frontmatter), block, index)


# --- quick input ---

def save_draft(
    text: str,
    body: str,
    draft_id: Optional[str] = None,
    now: Optional[datetime] = None,
    timestamp_format: str = DEFAULT_FORMAT,
    ) -> Change:
    """Write body into the draft section draft_id, appending a new draft if absent.

    The returned Change.block.id is the draft id to keep tracking.
    """
    body = adjust_heading_levels(body)
    stamp = _timestamp(now, timestamp_format)
    doc = parse_document(text)
    blocks = doc.content_blocks()

    i = _find_by_id(blocks, draft_id)
    if i >= 0:
        existing = blocks[i]
        block = _section_block(stamp, body, id=existing.id, is_draft=True, checked=existing.checked)
        blocks[i] = block
        logger.debug("Updated draft %s", block.id)
        return Change(reconstruct_markdown(blocks, doc.frontmatter), block, i)

    new_id = generate_block_id()
    new_text = _append_raw(text, f"## {stamp} ^{new_id} {DRAFT_FLAG}\n\n{body}")
    new_blocks = parse_document(new_text).content_blocks()
    i = _find_by_id(new_blocks, new_id)
    logger.debug("Created draft %s", new_id)
    return Change(new_text, new_blocks[i], i)


def remove_block(text: str, block_id: str) -> Optional[Change]:
    """Drop the block carrying block_id."""
    doc = parse_document(text)
    blocks = doc.content_blocks()
    i = _find_by_id(blocks, block_id)
    if i < 0:
        return None
    removed = blocks.pop(i)
    return Change(reconstruct_markdown(blocks, doc.frontmatter), removed, removed_index=i)


def append_section(
    text: str,
    body: str,
    draft_id: Optional[str] = None,
    now: Optional[datetime] = None,
    timestamp_format: str = DEFAULT_FORMAT,
    ) -> Optional[Change]:
    """Append body as a new timestamped section, replacing the tracked draft if present."""
    body = body.strip()
    if not body:
        return None
    doc = parse_document(text)
    blocks = doc.content_blocks()

    removed = _find_by_id(blocks, draft_id)
    if removed >= 0:
        logger.debug("Removing draft %s before append", draft_id)
        blocks.pop(removed)

    new_id = generate_block_id()
    block = _section_block(_timestamp(now, timestamp_format), adjust_heading_levels(body), id=new_id)
    blocks.append(block)
    return Change(
        reconstruct_markdown(blocks, doc.frontmatter),
        block,
        len(blocks) - 1,
        removed if removed >= 0 else None,
    )


def add_empty_card(text: str, now: Optional[datetime] = None, timestamp_format: str = DEFAULT_FORMAT) -> Change:
    """Append an empty timestamped section."""
    new_id = generate_block_id()
    new_text = _append_raw(text, f"## {_timestamp(now, timestamp_format)} ^{new_id}")
    new_blocks = parse_document(new_text).content_blocks()
    i = _find_by_id(new_blocks, new_id)
    return Change(new_text, new_blocks[i], i)


# --- cached UI state reindexing ---

def moved_index(i: int, from_index: int, to_index: int) -> int:
    """Where position i ends up after moving from_index to to_index."""
    if i == from_index:
        return to_index
    if from_index < to_index and from_index < i <= to_index:
        return i - 1
    if from_index > to_index and to_index <= i < from_index:
        return i + 1
    return i


def reindex_after_delete(states: dict[int, T], index: int) -> dict[int, T]:
    """Drop index and shift every later entry down by one."""
    return {
        (i - 1 if i > index else i): state
        for i, state in states.items()
        if i != index
    }


def reindex_after_move(states: dict[int, T], from_index: int, to_index: int) -> dict[int, T]:
    return {moved_index(i, from_index, to_index): state for i, state in states.items()}
