"""Card state persistence through SQLModel"""

from datetime import datetime

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from memocards.core.models import CardState
from memocards.crud.models import CardStateRecord
from memocards.crud.repo import StateStore


class SQLStateStore(StateStore):
    """Stores each document's card states as rows keyed by (path, position)."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _rows(self, session: Session, path: str) -> list[CardStateRecord]:
        return list(session.exec(select(CardStateRecord).where(CardStateRecord.path == path)).all())

    def load(self, path: str) -> dict[int, CardState]:
        with Session(self.engine) as session:
            return {r.position: CardState(collapsed=r.collapsed) for r in self._rows(session, path)}

    def save(self, path: str, states: dict[int, CardState]) -> None:
        """Replace all stored states for path."""
        now = datetime.now()
        with Session(self.engine) as session:
            for row in self._rows(session, path):
                session.delete(row)
            session.flush()
            for position, state in sorted(states.items()):
                session.add(CardStateRecord(
                    path=path, position=position, collapsed=state.collapsed, updated_at=now,
                ))
            session.commit()
