"""One interactive card per non-empty block"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from memocards.cards.drag import DragSession
from memocards.cards.editor import EditorFactory, PlainTextEditor, TextEditor
from memocards.cards.render import MarkdownRenderer
from memocards.core.models import Block, BlockType, CardState
from memocards.core.reconstruct import render_block


logger = logging.getLogger(__name__)

TIMESTAMP_RE = re.compile(r'^(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2})([ \t]+(.+))?')
TASK_RE = re.compile(r'\[[ x]\]')
LABEL_LENGTH = 30


async def _noop(*args) -> None:
    return None


@dataclass
class CardHandlers:
    """User intents a card forwards to the coordinator."""
    on_collapse:   Callable[[int, CardState], Awaitable[None]] = _noop
    on_check:      Callable[[int, bool], Awaitable[None]] = _noop
    on_delete:     Callable[[int], Awaitable[None]] = _noop
    on_reorder:    Callable[[int, int], Awaitable[None]] = _noop
    on_edit:       Callable[[int, str], Awaitable[None]] = _noop
    on_edit_start: Callable[[Optional[str]], None] = lambda block_id: None
    on_edit_end:   Callable[[], None] = lambda: None


class Card:
    """View of a single block: header state, rendered body, and inline editing.

    The card never parses or writes the document itself; every change is
    forwarded through its handlers and comes back via update_block().
    """

    def __init__(
        self,
        block: Block,
        index: int,
        renderer: MarkdownRenderer,
        source_path: str = '',
        handlers: Optional[CardHandlers] = None,
        state: Optional[CardState] = None,
        editor_factory: EditorFactory = PlainTextEditor,
        ):
        self.block = block
        self.index = index
        self.source_path = source_path
        self.handlers = handlers or CardHandlers()
        self.collapsed = state.collapsed if state else False
        self.checked = bool(block.checked)
        self.editing = False
        self.editor: Optional[TextEditor] = None
        self.html: Optional[str] = None
        self.destroyed = False
        self._renderer = renderer
        self._editor_factory = editor_factory
        self._pending: set[asyncio.Task] = set()
        self.render()

    # --- presentation ---

    @property
    def markdown(self) -> str:
        """Display markdown of the block (sections without their metadata suffixes)."""
        return render_block(self.block, with_metadata=False)

    @property
    def has_checkbox(self) -> bool:
        return not (self.block.type == BlockType.heading and self.block.level == 1)

    @property
    def label(self) -> str:
        """Header text: timestamp and heading, truncated heading, or the block type."""
        content = self.block.content
        if m := TIMESTAMP_RE.match(content):
            if m.group(3):
                heading = m.group(3).split('\n\n')[0]
                return f"{m.group(1)} {heading}"
            return m.group(1)
        if self.block.type == BlockType.heading:
            suffix = '...' if len(content) > LABEL_LENGTH else ''
            return content[:LABEL_LENGTH] + suffix
        return self.block.type.value

    def render(self) -> None:
        """Re-render the body, replacing any previous output."""
        if self.block.type == BlockType.empty:
            self.html = None
            return
        self.html = self._renderer.render(self.markdown, self.source_path)

    def update_block(self, block: Block) -> None:
        """Swap in a freshly parsed block and re-render the body unless editing."""
        self.block = block
        if block.checked is not None and block.checked != self.checked:
            self.checked = block.checked
        if not self.editing:
            self.render()

    # --- header intents ---

    async def toggle_collapse(self) -> None:
        self.collapsed = not self.collapsed
        await self.handlers.on_collapse(self.index, CardState(collapsed=self.collapsed))

    async def set_checked(self, checked: bool) -> None:
        self.checked = checked
        await self.handlers.on_check(self.index, checked)

    async def request_delete(self) -> None:
        await self.handlers.on_delete(self.index)

    # --- drag and drop ---

    def start_drag(self, session: DragSession) -> None:
        session.start(self.index)

    def end_drag(self, session: DragSession) -> None:
        """Drag ended without a drop on a card."""
        session.end()

    async def drop(self, session: DragSession, top_half: bool) -> None:
        move = session.drop(self.index, top_half)
        if move:
            await self.handlers.on_reorder(*move)

    # --- editing ---

    def start_edit(self) -> None:
        if self.editing:
            return
        self.editing = True
        self.handlers.on_edit_start(self.block.id)
        self.editor = self._editor_factory(initial=self.markdown, on_blur=self._on_blur)
        self.editor.focus()

    def _on_blur(self, editor: TextEditor) -> None:
        task = asyncio.get_running_loop().create_task(self.finish_edit())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        task.add_done_callback(self._log_save_failure)

    def _log_save_failure(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Saving card %d failed", self.index, exc_info=task.exception())

    async def finish_edit(self) -> None:
        """Leave edit mode, saving the editor text when it is not blank."""
        if not self.editing or self.editor is None:
            return
        content = self.editor.get_value().strip()
        self._close_editor()
        if content:
            await self.handlers.on_edit(self.index, content)

    def cancel_edit(self) -> None:
        if self.editing:
            self._close_editor()

    def _close_editor(self) -> None:
        if self.editor is not None:
            self.editor.destroy()
            self.editor = None
        self.editing = False
        self.handlers.on_edit_end()
        self.render()

    async def toggle_task(self, ordinal: int, checked: bool) -> None:
        """Rewrite the marker of the ordinal-th task item render() numbered, and save it as an edit."""
        task_lines = self._renderer.task_lines(self.markdown)
        if not 0 <= ordinal < len(task_lines):
            logger.debug("Card %d has no task #%d", self.index, ordinal)
            return
        lines = self.markdown.split('\n')
        n = task_lines[ordinal]
        lines[n] = TASK_RE.sub('[x]' if checked else '[ ]', lines[n], count=1)
        await self.handlers.on_edit(self.index, '\n'.join(lines))

    # --- teardown ---

    def destroy(self) -> None:
        """Release the editor, pending blur saves, and rendered output."""
        if self.editor is not None:
            self.editor.destroy()
            self.editor = None
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self.editing = False
        self.html = None
        self.destroyed = True
