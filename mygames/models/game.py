"""Game collection model."""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, Text, JSON, ForeignKey

from mygames.constants import TITLE_MAX_LENGTH
from mygames.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Game(Base):
    """A game (or DLC) in a user's collection."""

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    platform = Column(String(50), nullable=False)
    format = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, index=True)
    image_url = Column(Text)

    # Ratings
    critic_score = Column(Integer, default=0)
    user_rating = Column(Float)

    # Play dates
    started_at = Column(DateTime(timezone=True))
    finished_at = Column(DateTime(timezone=True))

    # User notes and catalog snapshot taken when the game was added
    notes = Column(Text)
    description = Column(Text)
    screenshots = Column(JSON)

    # Backlog queue
    play_order = Column(Integer)
    is_hidden_in_queue = Column(Boolean, nullable=False, default=False)

    # DLCs point at their base game
    parent_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
