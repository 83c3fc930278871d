"""In-memory game record and field validation."""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from mygames.constants import (
    DEFAULT_FORMAT,
    DEFAULT_PLATFORM,
    DEFAULT_STATUS,
    FORMATS,
    PENDING_STATUS,
    PLATFORMS,
    RATING_MAX,
    RATING_MIN,
    RATING_STEP,
    STATUSES,
    TITLE_MAX_LENGTH,
)
from mygames.exceptions import ValidationError


class GameRecord(BaseModel):
    """One row of the user's collection, as fetched from the games table."""
    id: int
    user_id: str
    title: str
    platform: str
    format: str
    status: str
    image_url: Optional[str] = None
    critic_score: int = 0
    user_rating: Optional[float] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    notes: Optional[str] = None
    description: Optional[str] = None
    screenshots: Optional[list[str]] = None
    play_order: Optional[int] = None
    is_hidden_in_queue: bool = False
    parent_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("started_at", "finished_at", "created_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive timestamps
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_dlc(self) -> bool:
        return self.parent_id is not None

    @property
    def is_pending(self) -> bool:
        return self.status == PENDING_STATUS


# Fields a user may change through the edit form, the detail page or the cover picker
EDITABLE_FIELDS = {
    "title",
    "platform",
    "format",
    "status",
    "image_url",
    "critic_score",
    "user_rating",
    "started_at",
    "finished_at",
    "notes",
    "parent_id",
}


def check_title(value: Any) -> str:
    """Return the stripped title, rejecting empty or overlong ones."""
    title = (value or "").strip()
    if not title:
        raise ValidationError("Title cannot be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title is longer than {TITLE_MAX_LENGTH} characters")
    return title


def check_rating(value: Any) -> Optional[float]:
    """Return ``value`` as a rating in [0, 10] on a 0.5 grid, or None when unrated."""
    if value is None or value == "":
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid rating: {value!r}")
    if not RATING_MIN <= rating <= RATING_MAX:
        raise ValidationError(f"Rating must be between {RATING_MIN:g} and {RATING_MAX:g}")
    if (rating / RATING_STEP) != int(rating / RATING_STEP):
        raise ValidationError(f"Rating must be a multiple of {RATING_STEP:g}")
    return rating


def validate_game_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial update against the vocabularies. Returns a cleaned copy."""
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    cleaned = dict(fields)
    if "title" in cleaned:
        cleaned["title"] = check_title(cleaned["title"])
    if "platform" in cleaned and cleaned["platform"] not in PLATFORMS:
        raise ValidationError(f"Unknown platform: {cleaned['platform']}")
    if "status" in cleaned and cleaned["status"] not in STATUSES:
        raise ValidationError(f"Unknown status: {cleaned['status']}")
    if "format" in cleaned and cleaned["format"] not in FORMATS:
        raise ValidationError(f"Unknown format: {cleaned['format']}")
    if "user_rating" in cleaned:
        cleaned["user_rating"] = check_rating(cleaned["user_rating"])
    if "critic_score" in cleaned:
        cleaned["critic_score"] = int(cleaned["critic_score"] or 0)
    return cleaned


# Catalog snapshot fields, set when a game is added and never edited afterwards
SNAPSHOT_FIELDS = {"description", "screenshots"}


def validate_new_game(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate the fields of a game about to be inserted, filling in defaults."""
    snapshot = {k: v for k, v in fields.items() if k in SNAPSHOT_FIELDS}
    editable = {k: v for k, v in fields.items() if k not in SNAPSHOT_FIELDS}
    if "title" not in editable:
        raise ValidationError("Title is required")

    editable.setdefault("platform", DEFAULT_PLATFORM)
    editable.setdefault("format", DEFAULT_FORMAT)
    editable.setdefault("status", DEFAULT_STATUS)
    cleaned = validate_game_fields(editable)
    cleaned.update(snapshot)
    return cleaned
