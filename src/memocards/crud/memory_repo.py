from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from memocards.core.models import CardState
from memocards.crud.repo import DocumentStore, StateStore


@dataclass
class MemoryDocumentStore(DocumentStore):
    """In-memory documents; on_write stands in for the host's change notification."""
    _docs: dict[str, str] = field(default_factory=dict)
    writes: list[tuple[str, str]] = field(default_factory=list)
    on_write: Optional[Callable[[str], Awaitable[None]]] = None

    async def read(self, path: str) -> str:
        try:
            return self._docs[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    async def write(self, path: str, text: str) -> None:
        self._docs[path] = text
        self.writes.append((path, text))
        if self.on_write:
            await self.on_write(path)

    def put(self, path: str, text: str) -> None:
        """Set content without recording a write (external edits in tests)."""
        self._docs[path] = text


@dataclass
class MemoryStateStore(StateStore):
    _states: dict[str, dict[int, CardState]] = field(default_factory=dict)

    def load(self, path: str) -> dict[int, CardState]:
        return {i: s.model_copy() for i, s in self._states.get(path, {}).items()}

    def save(self, path: str, states: dict[int, CardState]) -> None:
        self._states[path] = {i: s.model_copy() for i, s in states.items()}
