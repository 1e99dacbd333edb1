"""Engine and schema helpers for the card state database"""

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

# Registers tables on SQLModel.metadata
from memocards.crud import models  # noqa: F401


def make_engine(db_url: str) -> Engine:
    return create_engine(db_url, echo=False)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
