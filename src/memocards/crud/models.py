"""Database table definitions for cached card UI state"""

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class CardStateRecord(SQLModel, table=True):
    """Collapse state of the card at a non-empty block position within a document"""
    __tablename__ = "card_states"
    path: str = Field(primary_key=True, description="Document path the state belongs to")
    position: int = Field(primary_key=True, description="Index among non-empty blocks")
    collapsed: bool = Field(default=False, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
