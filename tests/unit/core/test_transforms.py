"""Unit tests for core/transforms.py"""

from memocards.core.models import BlockType, CardState
from memocards.core.parse import parse_document
from memocards.core.reconstruct import DRAFT_FLAG
from memocards.core.transforms import (
    add_empty_card,
    append_section,
    delete_block,
    edit_block,
    move_block,
    reindex_after_delete,
    reindex_after_move,
    remove_block,
    save_draft,
    set_checked,
    set_collapsed,
)


def _blocks(text: str) -> list:
    return parse_document(text).content_blocks()


# --- checkbox and collapse ---

def test_set_checked_on_h1_is_noop(sample_md):
    """Toggling the check of an H1 writes nothing."""
    assert set_checked(sample_md, 0) is None


def test_set_checked_out_of_range(sample_md):
    assert set_checked(sample_md, 99) is None
    assert set_checked(sample_md, -1) is None


def test_set_checked_flips_and_preserves_rest(sample_md):
    """Flipping a section changes only its checkbox."""
    change = set_checked(sample_md, 2)
    assert change.block.checked is False
    assert change.text == sample_md.replace("## [x] 2025-10-11 16:08", "## [ ] 2025-10-11 16:08")


def test_set_checked_explicit_value(sample_md):
    """An explicit value is applied even when it matches the current state."""
    change = set_checked(sample_md, 2, True)
    assert change.text == sample_md


def test_set_collapsed_adds_field(sample_md):
    """Collapsing a section without the field appends it after the id."""
    change = set_collapsed(sample_md, 2, True)
    assert "## [x] 2025-10-11 16:08 ^aaa-11111 [collapsed:: true]\n" in change.text


def test_set_collapsed_non_section(sample_md):
    assert set_collapsed(sample_md, 1, True) is None


# --- delete / move ---

def test_delete_block_keeps_frontmatter(sample_md):
    """Deleting a block re-joins the rest under the existing header."""
    change = delete_block(sample_md, 1)
    assert change.removed_index == 1
    assert change.text.startswith("---\ntitle: Daily Log\ntags: [memos]\n---\n\n# Journal\n\n## [x]")
    assert "Intro paragraph." not in change.text


def test_delete_block_out_of_range(sample_md):
    assert delete_block(sample_md, 4) is None


def test_move_block_forward(plain_md):
    """Moving 0 -> 2 splices the block after the one originally at 2."""
    change = move_block(plain_md, 0, 2)
    assert change.text == "Para B\n\nPara C\n\nPara A\n"
    assert change.index == 2


def test_move_matches_delete_then_insert(plain_md):
    """A move equals deleting the block and reinserting it at the target."""
    blocks = _blocks(plain_md)
    moved = blocks.pop(0)
    blocks.insert(2, moved)
    assert [b.content for b in _blocks(move_block(plain_md, 0, 2).text)] == [b.content for b in blocks]


def test_move_block_backward(plain_md):
    assert move_block(plain_md, 2, 0).text == "Para C\n\nPara A\n\nPara B\n"


def test_move_block_noops(plain_md):
    """Same index or an out-of-range index moves nothing."""
    assert move_block(plain_md, 1, 1) is None
    assert move_block(plain_md, 0, 3) is None


# --- edit ---

def test_edit_section_keeps_id_and_checkbox(sample_md):
    """Edited sections inherit id, checkbox and collapsed state."""
    change = edit_block(sample_md, 3, "## Renamed\n\n- only item")
    b = change.block
    assert (b.id, b.checked, b.collapsed) == ("bbb-22222", False, True)
    assert "## [ ] Renamed ^bbb-22222 [collapsed:: true]\n\n- only item\n" in change.text


def test_edit_section_explicit_collapsed_wins(sample_md):
    """A collapsed field typed into the new text replaces the old one."""
    change = edit_block(sample_md, 3, "## Renamed [collapsed:: false]")
    assert change.block.collapsed is False


def test_edit_clears_draft_flag():
    """An edited draft becomes a regular section."""
    text = f"## 2025-10-11 16:08 ^d-1 {DRAFT_FLAG}\n\ndraft body\n"
    change = edit_block(text, 0, "## 2025-10-11 16:08\n\nfinal body")
    assert change.block.is_draft is None
    assert change.text == "## 2025-10-11 16:08 ^d-1\n\nfinal body\n"


def test_edit_keeps_first_block_only(plain_md):
    """Extra blocks in the new text are dropped."""
    change = edit_block(plain_md, 1, "New B\n\nStray")
    assert change.text == "Para A\n\nNew B\n\nPara C\n"


def test_edit_empty_text_is_noop(plain_md):
    assert edit_block(plain_md, 0, "  \n\n ") is None


def test_edit_changes_block_kind(plain_md):
    """A paragraph can be replaced by a list."""
    change = edit_block(plain_md, 0, "- a\n- b")
    assert change.block.type == BlockType.list


# --- drafts and quick input ---

def test_save_draft_appends_raw(plain_md, now):
    """A new draft is appended without touching existing bytes."""
    change = save_draft(plain_md, "note text", now=now)
    draft = change.block
    assert change.text == f"{plain_md}\n## 2025-10-11 16:08 ^{draft.id} {DRAFT_FLAG}\n\nnote text\n"
    assert draft.is_draft is True
    assert change.index == 3


def test_save_draft_appends_after_missing_newline(now):
    change = save_draft("tail", "x", now=now)
    assert change.text.startswith("tail\n\n## 2025-10-11 16:08 ^")


def test_save_draft_updates_existing(plain_md, now):
    """Saving with a tracked id rewrites that draft in place."""
    first = save_draft(plain_md, "v1", now=now)
    second = save_draft(first.text, "v2\n# Heading", draft_id=first.block.id, now=now)
    assert second.block.id == first.block.id
    assert second.block.is_draft is True
    assert "v1" not in second.text
    assert second.text.endswith(f"^{first.block.id} {DRAFT_FLAG}\n\nv2\n### Heading\n")
    assert len(_blocks(second.text)) == 4


def test_save_draft_unknown_id_appends(plain_md, now):
    """A stale draft id falls back to appending a new draft."""
    change = save_draft(plain_md, "x", draft_id="gone-1", now=now)
    assert change.block.id != "gone-1"
    assert len(_blocks(change.text)) == 4


def test_save_draft_indented_heading_stays_one_draft(plain_md, now):
    """A draft whose body starts with an indented '## ' is tracked by its own id."""
    first = save_draft(plain_md, "  ## Sub\nmore", now=now)
    assert first.block.is_draft is True
    assert first.block.content == "2025-10-11 16:08\n\n  ### Sub\nmore"
    assert first.index == 3

    second = save_draft(first.text, "  ## Sub\nmore\nand more", draft_id=first.block.id, now=now)
    assert second.block.id == first.block.id
    assert len(_blocks(second.text)) == 4
    assert _blocks(second.text)[-1].content.endswith("more\nand more")


def test_remove_block_by_id(plain_md, now):
    draft = save_draft(plain_md, "x", now=now)
    change = remove_block(draft.text, draft.block.id)
    assert change.text == plain_md
    assert change.removed_index == 3


def test_remove_block_missing_id(plain_md):
    assert remove_block(plain_md, "nope") is None


def test_append_section_replaces_draft(plain_md, now):
    """Appending removes the tracked draft and adds a plain section at the end."""
    draft = save_draft(plain_md, "typing", now=now)
    change = append_section(draft.text, "## Done\nfinal", draft.block.id, now=now)
    blocks = _blocks(change.text)
    assert len(blocks) == 4
    assert change.removed_index == 3
    assert change.index == 3
    assert blocks[-1].is_draft is None
    assert blocks[-1].id == change.block.id
    assert blocks[-1].content == "2025-10-11 16:08\n\n### Done\nfinal"
    assert DRAFT_FLAG not in change.text


def test_append_section_without_draft(plain_md, now):
    change = append_section(plain_md, "hello", now=now)
    assert change.removed_index is None
    assert change.text == f"{plain_md}\n## 2025-10-11 16:08 ^{change.block.id}\n\nhello\n"


def test_append_section_keeps_indented_heading_body(plain_md, now):
    """An indented '## ' line stays inside the new section instead of splitting it off."""
    change = append_section(plain_md, "intro\n  ## Sub\nmore text", now=now)
    blocks = _blocks(change.text)
    assert len(blocks) == 4
    assert blocks[-1].id == change.block.id
    assert blocks[-1].content == "2025-10-11 16:08\n\nintro\n  ### Sub\nmore text"
    assert change.block.content == blocks[-1].content


def test_append_section_empty_is_noop(plain_md, now):
    assert append_section(plain_md, "   \n", now=now) is None


def test_add_empty_card(plain_md, now):
    """An empty card is a bare timestamped section with an id."""
    change = add_empty_card(plain_md, now=now, timestamp_format="YYYY/MM/DD")
    assert change.text == f"{plain_md}\n## 2025/10/11 ^{change.block.id}\n"
    assert change.block.content == "2025/10/11"


# --- reindexing ---

def test_reindex_after_delete():
    """The deleted index disappears and later indices shift down."""
    states = {0: CardState(collapsed=True), 1: CardState(), 3: CardState(collapsed=True)}
    assert reindex_after_delete(states, 1) == {0: CardState(collapsed=True), 2: CardState(collapsed=True)}


def test_reindex_after_move_forward():
    states = {0: "a", 1: "b", 2: "c", 3: "d"}
    assert reindex_after_move(states, 0, 2) == {2: "a", 0: "b", 1: "c", 3: "d"}


def test_reindex_after_move_backward():
    states = {0: "a", 1: "b", 2: "c", 3: "d"}
    assert reindex_after_move(states, 3, 1) == {0: "a", 2: "b", 3: "c", 1: "d"}
