"""Drag-and-drop session state and drop index arithmetic"""

import logging
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger(__name__)


def drop_target(source: int, target: int, top_half: bool) -> int:
    """Index the dragged card should take when dropped on the card at target."""
    if source < target:
        return target if not top_half else target - 1
    return target if top_half else target + 1


@dataclass
class DragSession:
    """The card currently being dragged, owned by the card list."""
    source: Optional[int] = None

    def start(self, index: int) -> None:
        logger.debug("Drag started from %d", index)
        self.source = index

    def end(self) -> None:
        self.source = None

    def drop(self, target: int, top_half: bool) -> Optional[tuple[int, int]]:
        """Return (from, to) for a reorder, or None if nothing should move."""
        source = self.source
        self.source = None
        if source is None or source == target:
            return None
        to_index = drop_target(source, target, top_half)
        if to_index == source:
            return None
        logger.debug("Drop on %d from %d (top=%s) -> %d", target, source, top_half, to_index)
        return source, to_index
