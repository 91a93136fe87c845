"""
Learning System Models (Pydantic)

Request/response schemas around the scheduling core:
- Card reviews
- Review queue statistics and forecasts
- Settings updates
- Anki imports

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for boundary validation.
    There is a corresponding SQLAlchemy file: flashrecall/db/models.py

    Data flows: Caller → Pydantic → ReviewService → SQLAlchemy → Database
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from flashrecall.enums.learning import Rating
from flashrecall.models.base import StrictRequest, StrictResponse


class CardReviewRequest(StrictRequest):
    """
    Request to record a review of a card.

    The rating accepts a Rating, a grade 1-4, or a label such as
    "good" or "difficult". Unknown labels raise InvalidRating.
    """

    card_id: int
    rating: Rating

    @field_validator("rating", mode="before")
    @classmethod
    def parse_rating(cls, value: Any) -> Rating:
        return Rating.parse(value)


class CardReviewResponse(StrictResponse):
    """Scheduling outcome of a review."""

    card_id: int
    rating: Rating
    stability: float = Field(..., gt=0, description="Memory stability in days")
    difficulty: float = Field(..., ge=1.0, le=10.0, description="Difficulty 1-10")
    due: datetime
    last_reviewed: datetime
    scheduled_days: int = Field(..., ge=1, description="Days until next review")
    retrievability: Optional[float] = Field(
        None, description="Recall probability at review time (None on first review)"
    )


class QueueStats(StrictResponse):
    """Card counts per review queue."""

    new_count: int = 0
    for_review_count: int = 0
    learning_count: int = 0


class ReviewForecast(StrictResponse):
    """Upcoming review counts by due-date bucket."""

    overdue: int = 0
    today: int = 0
    tomorrow: int = 0
    this_week: int = 0
    later: int = 0


class SettingUpdate(StrictRequest):
    """
    A single {"key", "value"} entry of a settings update payload.

    Platform payloads carry display fields (label, type, options) next to
    key and value; those are ignored.
    """

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    key: str
    value: Any = None


class AnkiImportRequest(StrictRequest):
    """Import cards from an Anki plain-text export into a deck."""

    deck_id: int
    anki_text: str = Field(..., min_length=1)
    front_idx: int = Field(0, ge=0)
    back_idx: int = Field(1, ge=0)

    @model_validator(mode="after")
    def check_distinct_fields(self) -> AnkiImportRequest:
        if self.front_idx == self.back_idx:
            raise ValueError("front_idx and back_idx must differ")
        return self
