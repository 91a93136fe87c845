"""
Unit tests for Learning System Pydantic models.

Tests the request/response models for validation and serialization.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from flashrecall.enums.learning import Rating
from flashrecall.errors import InvalidRating
from flashrecall.models.learning import (
    AnkiImportRequest,
    CardReviewRequest,
    CardReviewResponse,
    QueueStats,
    SettingUpdate,
)


class TestCardReviewRequest:
    """Tests for CardReviewRequest."""

    def test_label_rating(self):
        request = CardReviewRequest(card_id=1, rating="difficult")
        assert request.rating is Rating.HARD

    def test_grade_rating(self):
        assert CardReviewRequest(card_id=1, rating=4).rating is Rating.EASY

    def test_unknown_rating(self):
        with pytest.raises(InvalidRating):
            CardReviewRequest(card_id=1, rating="meh")

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            CardReviewRequest(card_id=1, rating="good", duration=3)


class TestCardReviewResponse:
    """Tests for CardReviewResponse."""

    def test_valid(self, now):
        response = CardReviewResponse(
            card_id=1,
            rating=Rating.GOOD,
            stability=2.4,
            difficulty=4.93,
            due=now + timedelta(days=8),
            last_reviewed=now,
            scheduled_days=8,
        )
        assert response.retrievability is None
        assert response.model_dump()["rating"] == Rating.GOOD

    @pytest.mark.parametrize(
        "field,value",
        [("stability", 0.0), ("difficulty", 11.0), ("scheduled_days", 0)],
    )
    def test_out_of_range(self, now, field, value):
        data = {
            "card_id": 1,
            "rating": Rating.GOOD,
            "stability": 2.4,
            "difficulty": 4.93,
            "due": now,
            "last_reviewed": now,
            "scheduled_days": 8,
        }
        data[field] = value
        with pytest.raises(ValidationError):
            CardReviewResponse(**data)


class TestQueueStats:
    def test_defaults(self):
        assert QueueStats().model_dump() == {
            "new_count": 0,
            "for_review_count": 0,
            "learning_count": 0,
        }


class TestSettingUpdate:
    def test_strips_key_and_ignores_extras(self):
        setting = SettingUpdate.model_validate(
            {"key": " desired_retention ", "value": 80, "label": "Retention"}
        )
        assert setting.key == "desired_retention"
        assert setting.value == 80

    def test_missing_key(self):
        with pytest.raises(ValidationError):
            SettingUpdate.model_validate({"value": 80})


class TestAnkiImportRequest:
    def test_defaults(self):
        request = AnkiImportRequest(deck_id=3, anki_text="uno\tone")
        assert (request.front_idx, request.back_idx) == (0, 1)

    def test_same_index(self):
        with pytest.raises(ValidationError):
            AnkiImportRequest(deck_id=3, anki_text="uno\tone", front_idx=1, back_idx=1)

    def test_empty_text(self):
        with pytest.raises(ValidationError):
            AnkiImportRequest(deck_id=3, anki_text="")
