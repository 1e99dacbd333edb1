"""Storage interfaces: document text and cached per-card UI state"""

from abc import ABC, abstractmethod

from memocards.core.models import CardState


class DocumentStore(ABC):
    @abstractmethod
    async def read(self, path: str) -> str:
        """Return the current text of path."""
        raise NotImplementedError

    @abstractmethod
    async def write(self, path: str, text: str) -> None:
        raise NotImplementedError


class StateStore(ABC):
    """Ephemeral {index -> CardState} cache keyed by document path."""

    @abstractmethod
    def load(self, path: str) -> dict[int, CardState]:
        raise NotImplementedError

    @abstractmethod
    def save(self, path: str, states: dict[int, CardState]) -> None:
        raise NotImplementedError
