"""SQLAlchemy models."""
from mygames.models.game import Game

__all__ = [
    "Game",
]
