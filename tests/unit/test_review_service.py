"""
Unit tests for ReviewService.

Tests the database adapter with a mocked AsyncSession: configuration
loading, session planning, review processing and Anki import.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from flashrecall.db.models import Flashcard, Review, UserSettings
from flashrecall.enums.learning import Rating
from flashrecall.errors import CardNotFoundError, InvalidRating
from flashrecall.models.learning import (
    AnkiImportRequest,
    CardReviewRequest,
    CardReviewResponse,
    QueueStats,
    ReviewForecast,
)
from flashrecall.services.learning.fsrs import FSRSScheduler
from flashrecall.services.learning.ledger import InMemoryReviewLedger, ReviewRecord
from flashrecall.services.learning.review_service import ReviewService, SqlReviewLedger
from flashrecall.services.learning.user_settings import UserSchedulingConfig


def make_card(card_id, **state):
    card = Flashcard(id=card_id, deck_id=1, front=f"front {card_id}", back="back")
    for key, value in state.items():
        setattr(card, key, value)
    return card


def scalar_result(value):
    """Mock execute() result for scalar_one_or_none()."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def scalars_result(values):
    """Mock execute() result for scalars().all()."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


class TestReviewServiceInitialization:
    """Tests for ReviewService initialization."""

    def test_defaults(self, mock_db_session):
        service = ReviewService(mock_db_session)

        assert isinstance(service.scheduler, FSRSScheduler)
        assert isinstance(service.ledger, SqlReviewLedger)
        assert service.ledger.db is mock_db_session

    def test_custom_ledger(self, mock_db_session):
        """An empty ledger is falsy but must still be kept."""
        ledger = InMemoryReviewLedger()
        assert len(ledger) == 0

        assert ReviewService(mock_db_session, ledger=ledger).ledger is ledger

    def test_custom_scheduler(self, mock_db_session):
        scheduler = FSRSScheduler(maximum_interval=365)
        assert ReviewService(mock_db_session, scheduler=scheduler).scheduler is scheduler


class TestSqlReviewLedger:
    """Tests for staging review rows."""

    def test_append_adds_review_row(self, mock_db_session, now):
        record = ReviewRecord(
            reviewed_at=now,
            scheduled_for=now + timedelta(days=8),
            rating=Rating.GOOD,
            stability_after=2.4,
            difficulty_after=4.93,
        )

        SqlReviewLedger(mock_db_session).append(5, record)

        row = mock_db_session.add.call_args[0][0]
        assert isinstance(row, Review)
        assert row.flashcard_id == 5
        assert row.reviewed == now
        assert row.scheduled == now + timedelta(days=8)
        assert row.rating == "good"
        assert row.stability == 2.4
        assert row.difficulty == 4.93
        mock_db_session.commit.assert_not_awaited()


class TestGetUserConfig:
    """Tests for loading per-user settings."""

    @pytest.mark.asyncio
    async def test_missing_row_uses_defaults(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        config = await ReviewService(mock_db_session).get_user_config("user-1")

        assert config == UserSchedulingConfig()

    @pytest.mark.asyncio
    async def test_stored_values(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(
            UserSettings(user_id="user-1", cards_per_day=30, desired_retention=90)
        )

        config = await ReviewService(mock_db_session).get_user_config("user-1")

        assert config.max_cards_per_session == 30
        assert config.desired_retention == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_null_retention(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(
            UserSettings(user_id="user-1", cards_per_day=15, desired_retention=None)
        )

        config = await ReviewService(mock_db_session).get_user_config("user-1")

        assert config.max_cards_per_session == 15
        assert config.desired_retention == 0.75


class TestReviewCard:
    """Tests for review processing."""

    @pytest.mark.asyncio
    async def test_first_review(self, mock_db_session, config, now):
        card = make_card(1)
        mock_db_session.execute.return_value = scalar_result(card)
        service = ReviewService(mock_db_session)

        result = await service.review_card("user-1", 1, "good", now=now, config=config)

        assert isinstance(result, CardReviewResponse)
        assert result.rating == Rating.GOOD
        assert result.scheduled_days == 8
        assert result.retrievability is None
        assert card.last_rating == "good"
        assert card.last_reviewed == now
        assert card.last_scheduled == now + timedelta(days=8)
        assert card.last_stability == pytest.approx(2.4)
        assert card.last_difficulty == pytest.approx(4.93)
        mock_db_session.add.assert_called_once()
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_subsequent_review(self, mock_db_session, config, now):
        card = make_card(
            2,
            last_stability=2.4,
            last_difficulty=4.93,
            last_reviewed=now - timedelta(days=3),
            last_scheduled=now + timedelta(days=5),
        )
        mock_db_session.execute.return_value = scalar_result(card)

        result = await ReviewService(mock_db_session).review_card(
            "user-1", 2, Rating.GOOD, now=now, config=config
        )

        assert result.scheduled_days == 31
        assert result.retrievability == pytest.approx(0.87935, abs=1e-4)
        assert card.last_stability == pytest.approx(9.278, rel=1e-3)

    @pytest.mark.asyncio
    async def test_loads_user_config(self, mock_db_session, now):
        """Stored retention of 95% shortens the first Good interval to 1 day."""
        card = make_card(1)
        mock_db_session.execute.side_effect = [
            scalar_result(
                UserSettings(user_id="user-1", cards_per_day=20, desired_retention=95)
            ),
            scalar_result(card),
        ]

        result = await ReviewService(mock_db_session).review_card(
            "user-1", 1, "good", now=now
        )

        assert result.scheduled_days == 1

    @pytest.mark.asyncio
    async def test_card_not_found(self, mock_db_session, config, now):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(CardNotFoundError) as exc_info:
            await ReviewService(mock_db_session).review_card(
                "user-1", 99, "good", now=now, config=config
            )

        assert exc_info.value.details == {"card_id": 99, "user_id": "user-1"}
        mock_db_session.add.assert_not_called()
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_rating_rejected_before_query(self, mock_db_session, config, now):
        with pytest.raises(InvalidRating):
            await ReviewService(mock_db_session).review_card(
                "user-1", 1, "meh", now=now, config=config
            )

        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_corrupted_card_treated_as_new(self, mock_db_session, config, now):
        card = make_card(3, last_stability=5.0, last_difficulty=None)
        mock_db_session.execute.return_value = scalar_result(card)

        result = await ReviewService(mock_db_session).review_card(
            "user-1", 3, "good", now=now, config=config
        )

        assert result.stability == pytest.approx(2.4)
        assert card.last_difficulty == pytest.approx(4.93)

    @pytest.mark.asyncio
    async def test_custom_ledger(self, mock_db_session, config, now):
        ledger = InMemoryReviewLedger()
        mock_db_session.execute.return_value = scalar_result(make_card(4))

        await ReviewService(mock_db_session, ledger=ledger).review_card(
            "user-1", 4, "easy", now=now, config=config
        )

        assert len(ledger) == 1
        card_id, record = ledger.entries[0]
        assert card_id == 4
        assert record.rating == Rating.EASY
        mock_db_session.add.assert_not_called()


class TestSubmitReview:
    """Tests for processing validated review requests."""

    @pytest.mark.asyncio
    async def test_alias_rating(self, mock_db_session, now):
        """The "difficult" alias reaches the scheduler as Hard."""
        card = make_card(5)
        mock_db_session.execute.side_effect = [
            scalar_result(None),
            scalar_result(card),
        ]
        request = CardReviewRequest(card_id=5, rating="difficult")

        result = await ReviewService(mock_db_session).submit_review(
            "user-1", request, now=now
        )

        assert result.card_id == 5
        assert result.rating == Rating.HARD
        assert result.stability == pytest.approx(0.6)
        assert card.last_rating == "hard"
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_card_not_found(self, mock_db_session, now):
        mock_db_session.execute.side_effect = [
            scalar_result(None),
            scalar_result(None),
        ]

        with pytest.raises(CardNotFoundError):
            await ReviewService(mock_db_session).submit_review(
                "user-1", CardReviewRequest(card_id=99, rating=3), now=now
            )


class TestPlanSession:
    """Tests for database-backed session planning."""

    @pytest.mark.asyncio
    async def test_orders_and_caps(self, mock_db_session, now):
        cards = [
            make_card(1),
            make_card(
                2,
                last_stability=3.0,
                last_difficulty=5.0,
                last_reviewed=now - timedelta(days=4),
                last_scheduled=now - timedelta(days=1),
            ),
            make_card(
                3,
                last_stability=3.0,
                last_difficulty=5.0,
                last_reviewed=now - timedelta(days=9),
                last_scheduled=now - timedelta(days=6),
            ),
        ]
        mock_db_session.execute.return_value = scalars_result(cards)
        config = UserSchedulingConfig(max_cards_per_session=2)

        card_ids = await ReviewService(mock_db_session).plan_session(
            "user-1", now=now, config=config
        )

        assert card_ids == [3, 2]

    @pytest.mark.asyncio
    async def test_no_cards(self, mock_db_session, config, now):
        mock_db_session.execute.return_value = scalars_result([])

        card_ids = await ReviewService(mock_db_session).plan_session(
            "user-1", now=now, config=config
        )

        assert card_ids == []


class TestQueueStats:
    """Tests for database-backed queue statistics."""

    @pytest.mark.asyncio
    async def test_counts(self, mock_db_session, now):
        mock_db_session.execute.return_value = scalars_result(
            [None, now - timedelta(days=1), now + timedelta(days=1), None]
        )

        stats = await ReviewService(mock_db_session).get_queue_stats("user-1", now=now)

        assert stats == QueueStats(new_count=2, for_review_count=1, learning_count=1)


class TestReviewForecast:
    """Tests for the database-backed due-date forecast."""

    @pytest.mark.asyncio
    async def test_buckets(self, mock_db_session, now):
        mock_db_session.execute.return_value = scalars_result(
            [
                None,
                now - timedelta(days=2),
                now + timedelta(hours=2),
                now + timedelta(days=1),
                now + timedelta(days=3),
                now + timedelta(days=30),
            ]
        )

        forecast = await ReviewService(mock_db_session).get_review_forecast(
            "user-1", now=now
        )

        assert isinstance(forecast, ReviewForecast)
        assert forecast == ReviewForecast(
            overdue=1, today=1, tomorrow=1, this_week=1, later=1
        )

    @pytest.mark.asyncio
    async def test_no_cards(self, mock_db_session, now):
        mock_db_session.execute.return_value = scalars_result([])

        forecast = await ReviewService(mock_db_session).get_review_forecast(
            "user-1", now=now
        )

        assert forecast == ReviewForecast()


class TestImportCards:
    """Tests for Anki import."""

    @pytest.mark.asyncio
    async def test_creates_new_cards(self, mock_db_session):
        mock_db_session.execute.return_value = scalars_result(["uno"])

        request = AnkiImportRequest(
            deck_id=7, anki_text="uno\tone\ndos\ttwo\ntres\tthree\n"
        )

        created = await ReviewService(mock_db_session).import_cards(request)

        assert created == 2
        added = [call[0][0] for call in mock_db_session.add.call_args_list]
        assert [(c.front, c.back, c.deck_id) for c in added] == [
            ("dos", "two", 7),
            ("tres", "three", 7),
        ]
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_to_import(self, mock_db_session):
        request = AnkiImportRequest(deck_id=7, anki_text="#html:false\n")

        created = await ReviewService(mock_db_session).import_cards(request)

        assert created == 0
        mock_db_session.execute.assert_not_awaited()
        mock_db_session.commit.assert_not_awaited()


class TestCountReviews:
    @pytest.mark.asyncio
    async def test_count(self, mock_db_session):
        result = MagicMock()
        result.scalar.return_value = 3
        mock_db_session.execute = AsyncMock(return_value=result)

        assert await ReviewService(mock_db_session).count_reviews(1) == 3
