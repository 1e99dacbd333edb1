"""Serialized read-modify-write of one open document and reconciliation of its cards

Each mutation re-reads the file, applies a pure transform, writes the result,
then patches the live cards instead of rebuilding them where it can. Writes
made here arm a one-shot flag so the change notification they cause does not
trigger a reload; genuine external changes reload unless the user has input
in progress.
"""

import asyncio
import inspect
import logging
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Optional, Union

from memocards.cards.card import Card, CardHandlers
from memocards.cards.drag import DragSession
from memocards.cards.editor import EditorFactory, PlainTextEditor, TextEditor
from memocards.cards.render import MarkdownRenderer
from memocards.config import Settings
from memocards.core.models import Block, CardState
from memocards.core.parse import parse_document
from memocards.core.transforms import (
    Change,
    add_empty_card,
    append_section,
    delete_block,
    edit_block,
    move_block,
    moved_index,
    reindex_after_delete,
    reindex_after_move,
    remove_block,
    save_draft,
    set_checked,
    set_collapsed,
)
from memocards.crud.memory_repo import MemoryStateStore
from memocards.crud.repo import DocumentStore, StateStore


logger = logging.getLogger(__name__)

Confirm = Callable[[], Union[bool, Awaitable[bool]]]


class EditCoordinator:
    """Owns the cards, cached UI state, and write bookkeeping for one document."""

    def __init__(
        self,
        path: str,
        store: DocumentStore,
        states: Optional[StateStore] = None,
        settings: Optional[Settings] = None,
        confirm: Optional[Confirm] = None,
        editor_factory: EditorFactory = PlainTextEditor,
        renderer: Optional[MarkdownRenderer] = None,
        ):
        self.path = path
        self.store = store
        self.state_store = states or MemoryStateStore()
        self.settings = settings or Settings()
        self.renderer = renderer or MarkdownRenderer(self.settings.parser_config)
        self.editor_factory = editor_factory
        self.drag = DragSession()

        self.cards: list[Card] = []
        self.card_states: dict[int, CardState] = {}
        self.quick_input: Optional[TextEditor] = None
        self.frontmatter = ''
        self.title: Optional[str] = None
        self.draft_id: Optional[str] = None
        self.editing = False
        self.editing_block_id: Optional[str] = None

        self._confirm = confirm
        self._self_write = False
        self._rendering = False
        self._lock = asyncio.Lock()
        self._autosave: Optional[asyncio.Task] = None

    # --- view state ---

    @property
    def is_mutating(self) -> bool:
        return self._lock.locked()

    @property
    def display_title(self) -> str:
        if self.settings.use_frontmatter_title and self.title:
            return self.title
        return PurePosixPath(self.path).stem

    @property
    def pending_autosave(self) -> Optional[asyncio.Task]:
        return self._autosave

    def card_for(self, index: int) -> Optional[Card]:
        return next((c for c in self.cards if c.index == index), None)

    def _quick_input_has_text(self) -> bool:
        return bool(self.quick_input and self.quick_input.get_value().strip())

    # --- rendering ---

    async def open(self) -> None:
        """Load the document and build its cards."""
        await self._render()

    async def render(self) -> bool:
        """Rebuild all cards from disk; dropped while a render or mutation is running."""
        if self._rendering or self._lock.locked():
            logger.debug("Render requested while busy, dropping")
            return False
        await self._render()
        return True

    async def _render(self) -> None:
        self._rendering = True
        try:
            text = await self.store.read(self.path)
            doc = parse_document(text)
            self.frontmatter, self.title = doc.frontmatter, doc.title
            self._destroy_cards()
            self.card_states = self.state_store.load(self.path)

            blocks = doc.content_blocks()
            draft = next((b for b in blocks if b.is_draft), None)
            if draft:
                self.draft_id = draft.id
                logger.debug("Draft section %s found", draft.id)

            for index, block in enumerate(blocks):
                if block.is_draft:
                    continue
                state = self.card_states.get(index)
                if block.collapsed is not None:
                    state = CardState(collapsed=block.collapsed)
                    self.card_states[index] = state
                self.cards.append(self._make_card(block, index, state))

            self._reset_quick_input()
            if draft:
                self.quick_input.set_value(draft.content.partition('\n\n')[2])
            logger.debug("Rendered %d cards for %s", len(self.cards), self.path)
        finally:
            self._rendering = False

    def _make_card(self, block: Block, index: int, state: Optional[CardState]) -> Card:
        handlers = CardHandlers(
            on_collapse=self.toggle_collapse,
            on_check=self.toggle_check,
            on_delete=self.delete,
            on_reorder=self.reorder,
            on_edit=self.edit,
            on_edit_start=self._edit_started,
            on_edit_end=self._edit_ended,
        )
        return Card(block, index, self.renderer, self.path, handlers, state, self.editor_factory)

    def _reset_quick_input(self) -> None:
        if self.quick_input is not None:
            self.quick_input.destroy()
        self.quick_input = self.editor_factory(on_change=self.quick_input_changed)

    def _destroy_cards(self) -> None:
        for card in self.cards:
            card.destroy()
        self.cards = []

    # --- change notifications ---

    async def on_file_changed(self) -> bool:
        """Handle a change notification for the open file; True if it caused a reload."""
        if self._self_write:
            self._self_write = False
            logger.debug("Skipping reload: change came from our own write")
            return False
        if self.editing or self._quick_input_has_text():
            logger.debug("Skipping reload: input in progress (editing=%s, block=%s)",
                         self.editing, self.editing_block_id)
            return False
        logger.debug("Reloading %s after external change", self.path)
        return await self.render()

    def _edit_started(self, block_id: Optional[str]) -> None:
        self.editing = True
        self.editing_block_id = block_id

    def _edit_ended(self) -> None:
        self.editing = False
        self.editing_block_id = None

    # --- write path ---

    async def _write(self, text: str) -> None:
        self._self_write = True
        try:
            await self.store.write(self.path, text)
        except BaseException:
            self._self_write = False
            raise

    async def _apply(self, transform: Callable[[str], Optional[Change]]) -> Optional[Change]:
        """Read the latest text, transform it, and write the result. Call with the lock held."""
        text = await self.store.read(self.path)
        change = transform(text)
        if change is not None:
            await self._write(change.text)
        return change

    def _save_states(self) -> None:
        self.state_store.save(self.path, self.card_states)

    def _forget_index(self, index: int) -> None:
        """Drop a removed block's card/state and shift later indices down."""
        for card in [c for c in self.cards if c.index == index]:
            card.destroy()
            self.cards.remove(card)
        for card in self.cards:
            if card.index > index:
                card.index -= 1
        self.card_states = reindex_after_delete(self.card_states, index)
        self._save_states()

    # --- card intents ---

    async def toggle_collapse(self, index: int, state: CardState) -> bool:
        """Cache the card's state and store it in the heading when the card is a section.

        Returns False, caching nothing, when no card exists at index.
        """
        async with self._lock:
            text = await self.store.read(self.path)
            if not 0 <= index < len(parse_document(text).content_blocks()):
                logger.debug("No block at index %d; collapse ignored", index)
                return False
            self.card_states[index] = state
            self._save_states()
            change = set_collapsed(text, index, state.collapsed)
            if change is not None:
                await self._write(change.text)
        return True

    async def toggle_check(self, index: int, checked: Optional[bool] = None) -> bool:
        """Set (or flip, when checked is None) a section's checkbox."""
        async with self._lock:
            change = await self._apply(lambda text: set_checked(text, index, checked))
            if change is None:
                return False
            if card := self.card_for(index):
                card.update_block(change.block)
        return True

    async def _confirmed(self) -> bool:
        if self._confirm is None:
            logger.warning("No confirmation prompt available; delete declined")
            return False
        answer = self._confirm()
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def delete(self, index: int) -> bool:
        if not await self._confirmed():
            return False
        async with self._lock:
            change = await self._apply(lambda text: delete_block(text, index))
            if change is None:
                return False
            self.card_states = reindex_after_delete(self.card_states, index)
            self._save_states()
            await self._render()
        return True

    async def reorder(self, from_index: int, to_index: int) -> bool:
        if from_index == to_index:
            return False
        async with self._lock:
            change = await self._apply(lambda text: move_block(text, from_index, to_index))
            if change is None:
                return False
            for card in self.cards:
                card.index = moved_index(card.index, from_index, to_index)
            self.cards.sort(key=lambda c: c.index)
            self.card_states = reindex_after_move(self.card_states, from_index, to_index)
            self._save_states()
        logger.debug("Reordered %d -> %d without reload", from_index, to_index)
        return True

    async def edit(self, index: int, new_text: str) -> bool:
        async with self._lock:
            change = await self._apply(lambda text: edit_block(text, index, new_text))
            if change is None:
                return False
            if card := self.card_for(index):
                card.update_block(change.block)
        return True

    async def add_card(self) -> Block:
        """Append an empty timestamped section and reload."""
        async with self._lock:
            change = await self._apply(
                lambda text: add_empty_card(text, timestamp_format=self.settings.timestamp_format))
            await self._render()
        return change.block

    # --- quick input and drafts ---

    def quick_input_changed(self, value: str) -> None:
        """Debounce quick-input edits into a draft save (or draft removal when cleared)."""
        self._cancel_autosave()
        if value.strip():
            self._schedule(lambda: self.autosave_draft(value))
        elif self.draft_id:
            draft_id = self.draft_id
            self._schedule(lambda: self.delete_draft(draft_id))

    def _schedule(self, action: Callable[[], Awaitable]) -> None:
        task = asyncio.get_running_loop().create_task(self._run_later(action))
        task.add_done_callback(self._log_autosave_failure)
        self._autosave = task

    def _log_autosave_failure(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Draft autosave for %s failed", self.path, exc_info=task.exception())

    async def _run_later(self, action: Callable[[], Awaitable]) -> None:
        await asyncio.sleep(self.settings.autosave_delay)
        self._autosave = None
        await action()

    def _cancel_autosave(self) -> None:
        if self._autosave is not None:
            self._autosave.cancel()
            self._autosave = None

    async def autosave_draft(self, text: str) -> Optional[str]:
        """Store text in the draft section; returns the draft id."""
        if not text.strip():
            return None
        async with self._lock:
            change = await self._apply(lambda current: save_draft(
                current, text, self.draft_id, timestamp_format=self.settings.timestamp_format))
            self.draft_id = change.block.id
        return self.draft_id

    async def delete_draft(self, block_id: Optional[str] = None) -> bool:
        block_id = block_id or self.draft_id
        if not block_id:
            return False
        async with self._lock:
            change = await self._apply(lambda text: remove_block(text, block_id))
            if block_id == self.draft_id:
                self.draft_id = None
            if change is None:
                return False
            self._forget_index(change.removed_index)
        logger.debug("Deleted draft %s", block_id)
        return True

    async def append(self, text: str) -> Optional[Block]:
        """Append text as a confirmed section, replacing the tracked draft."""
        if not text.strip():
            return None
        async with self._lock:
            change = await self._apply(lambda current: append_section(
                current, text, self.draft_id, timestamp_format=self.settings.timestamp_format))
            self.draft_id = None
            if change is None:
                return None
            if change.removed_index is not None:
                self._forget_index(change.removed_index)
            self.cards.append(self._make_card(change.block, change.index, None))
        return change.block

    async def submit_quick_input(self) -> Optional[Block]:
        if self.quick_input is None:
            return None
        text = self.quick_input.get_value().strip()
        if not text:
            return None
        self._cancel_autosave()
        block = await self.append(text)
        self.quick_input.clear()
        return block

    # --- teardown ---

    def close(self) -> None:
        self._cancel_autosave()
        self.drag.end()
        if self.quick_input is not None:
            self.quick_input.destroy()
            self.quick_input = None
        self._destroy_cards()
