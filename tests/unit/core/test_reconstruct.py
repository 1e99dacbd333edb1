"""Unit tests for core/reconstruct.py"""

import re

import pytest

from memocards.core.models import Block, BlockType
from memocards.core.parse import parse_blocks, parse_document
from memocards.core.reconstruct import generate_block_id, reconstruct_markdown, render_block


ID_PATTERN = re.compile(r'^[a-z0-9]+-[a-z0-9]+$')


def _section(content: str, **meta) -> Block:
    return Block(type=BlockType.heading, level=2, content=content, **meta)


def test_reconstruct_two_sections():
    """Sections render checkbox, heading text and id, joined by a blank line."""
    blocks = [
        _section("First\n\nContent 1", checked=True, id="id1"),
        _section("Second\n\nContent 2", checked=False, id="id2"),
    ]
    assert reconstruct_markdown(blocks) == (
        "## [x] First ^id1\n\nContent 1\n\n## [ ] Second ^id2\n\nContent 2\n"
    )


def test_reconstruct_assigns_missing_id():
    """A section without an id gets a generated one, visible on the block afterwards."""
    block = _section("Untitled")
    text = reconstruct_markdown([block])
    assert block.id is not None
    assert ID_PATTERN.match(block.id)
    assert text == f"## Untitled ^{block.id}\n"


def test_reconstruct_keeps_existing_ids(sample_md):
    """Reconstructing blocks that all carry ids never changes them."""
    blocks = parse_document(sample_md).content_blocks()
    before = [b.id for b in blocks]
    reconstruct_markdown(blocks)
    assert [b.id for b in blocks] == before


def test_generate_block_id_shape():
    """Generated ids are '<base36 time>-<base36 suffix>' and differ between calls."""
    ids = {generate_block_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(ID_PATTERN.match(i) for i in ids)


def test_section_metadata_order():
    """Heading line order is checkbox, text, id, collapsed, draft flag."""
    block = _section("Note\n\nbody", checked=False, id="n-1", collapsed=False, is_draft=True)
    assert render_block(block) == (
        "## [ ] Note ^n-1 [collapsed:: false] %%quickadd-draft%%\n\nbody"
    )


def test_render_block_display_form_has_no_metadata():
    """with_metadata=False gives plain '## content' and assigns no id."""
    block = _section("Note\n\nbody", checked=True)
    assert render_block(block, with_metadata=False) == "## Note\n\nbody"
    assert block.id is None


@pytest.mark.parametrize("block, expected", [
    (Block(type=BlockType.heading, level=3, content="Sub"), "### Sub"),
    (Block(type=BlockType.code_block, content="x = 1", language="python"), "```python\nx = 1\n```"),
    (Block(type=BlockType.code_block, content="x", language=""), "```\nx\n```"),
    (Block(type=BlockType.blockquote, content="a\nb"), "> a\n> b"),
    (Block(type=BlockType.divider, content=""), "---"),
    (Block(type=BlockType.list, content="- a\n  b"), "- a\n  b"),
])
def test_render_block_kinds(block, expected):
    """Non-section blocks render with their own markers."""
    assert render_block(block) == expected


def test_reconstruct_prepends_frontmatter():
    """Frontmatter goes first, unmodified, and the result ends with one newline."""
    fm = "---\ntitle: T\n---\n\n"
    blocks = [Block(type=BlockType.paragraph, content="Body\n\n")]
    assert reconstruct_markdown(blocks, fm) == "---\ntitle: T\n---\n\nBody\n"


def test_reconstruct_empty():
    """No blocks and no frontmatter gives an empty document."""
    assert reconstruct_markdown([]) == ""


def test_round_trip_is_byte_identical(sample_md):
    """A canonically formatted document reconstructs to the same bytes."""
    doc = parse_document(sample_md)
    assert reconstruct_markdown(doc.content_blocks(), doc.frontmatter) == sample_md


def test_round_trip_is_idempotent():
    """parse(reconstruct(parse(D))) matches parse(D) field for field."""
    text = (
        "## [x] One ^a-1\n\nbody one\n\n\n"
        "## Two ^b-2 [collapsed:: true]\n"
        "## [ ] Three ^c-3 %%quickadd-draft%%\n\n> quote\n\n```\ncode\n```\n"
    )
    first = [b for b in parse_blocks(text) if b.type != BlockType.empty]
    again = parse_blocks(reconstruct_markdown(first))
    again = [b for b in again if b.type != BlockType.empty]
    assert [b.logical() for b in again] == [b.logical() for b in first]
