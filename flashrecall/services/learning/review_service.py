"""
Review Service

Service layer that connects the FSRS scheduler and session planner to
the database. Each operation runs as one logical unit of work on the
session it was given.

Concurrency:
    Two reviews of the same card must not interleave: the second review's
    prior state has to reflect the first one. review_card() locks the
    flashcard row (SELECT ... FOR UPDATE) before reading the prior state
    and commits the state update and ledger row together.

Usage:
    from flashrecall.services.learning import ReviewService

    async with session_scope() as db:
        service = ReviewService(db)

        card_ids = await service.plan_session(user_id)
        result = await service.review_card(user_id, card_ids[0], "good")
"""

import logging
from datetime import datetime, timezone
from typing import Hashable, Optional, Union

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashrecall.db.models import Deck, Flashcard, Review, UserSettings
from flashrecall.enums.learning import Rating
from flashrecall.errors import CardNotFoundError, InvalidState
from flashrecall.models.learning import (
    AnkiImportRequest,
    CardReviewRequest,
    CardReviewResponse,
    QueueStats,
    ReviewForecast,
)
from flashrecall.services.learning.fsrs import FSRSScheduler, create_scheduler
from flashrecall.services.learning.importer import parse_anki_text
from flashrecall.services.learning.ledger import ReviewLedger, ReviewRecord
from flashrecall.services.learning.memory import (
    NEW_CARD,
    MemoryState,
    memory_state_from_row,
)
from flashrecall.services.learning.session_planner import (
    ReviewCandidate,
    SessionPlanner,
    get_queue_stats,
    get_review_forecast,
)
from flashrecall.services.learning.user_settings import UserSchedulingConfig

logger = logging.getLogger(__name__)


class SqlReviewLedger(ReviewLedger):
    """
    Ledger that stages review rows on an AsyncSession.

    Rows are only added to the session; the caller's transaction commits
    them together with the card state update.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def append(self, card_id: Hashable, record: ReviewRecord) -> None:
        self.db.add(
            Review(
                flashcard_id=card_id,
                reviewed=record.reviewed_at,
                scheduled=record.scheduled_for,
                rating=record.rating.label,
                stability=record.stability_after,
                difficulty=record.difficulty_after,
            )
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReviewService:
    """
    Service for review sessions backed by the database.

    Provides:
    - Per-user scheduling configuration
    - Session planning over the user's cards
    - Review processing with the FSRS scheduler and ledger
    - Queue statistics and due-date forecasts
    - Anki text import
    """

    def __init__(
        self,
        db: AsyncSession,
        scheduler: Optional[FSRSScheduler] = None,
        ledger: Optional[ReviewLedger] = None,
    ):
        """
        Initialize the review service.

        Args:
            db: Async database session
            scheduler: FSRS scheduler (defaults to create_scheduler())
            ledger: Review ledger (defaults to a SqlReviewLedger on db)
        """
        self.db = db
        self.scheduler = scheduler if scheduler is not None else create_scheduler()
        self.ledger = ledger if ledger is not None else SqlReviewLedger(db)
        self.planner = SessionPlanner()

    async def get_user_config(self, user_id: str) -> UserSchedulingConfig:
        """
        Load a user's scheduling configuration.

        Missing settings rows and NULL columns fall back to defaults.
        """
        result = await self.db.execute(
            select(UserSettings).where(UserSettings.user_id == user_id)
        )
        row = result.scalar_one_or_none()

        if row is None:
            return UserSchedulingConfig()

        return UserSchedulingConfig.from_stored(
            cards_per_day=row.cards_per_day,
            retention_percent=row.desired_retention,
        )

    async def plan_session(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        config: Optional[UserSchedulingConfig] = None,
    ) -> list[int]:
        """
        Choose the cards for a user's next review session.

        Args:
            user_id: Owner of the decks to draw from
            now: Reference time (default: current UTC time)
            config: Scheduling config (default: loaded from settings table)

        Returns:
            Ordered flashcard ids, at most config.max_cards_per_session
        """
        if now is None:
            now = _utc_now()
        if config is None:
            config = await self.get_user_config(user_id)

        result = await self.db.execute(
            select(Flashcard)
            .join(Deck, Flashcard.deck_id == Deck.id)
            .where(
                Deck.user_id == user_id,
                or_(Flashcard.last_scheduled.is_(None), Flashcard.last_scheduled <= now),
            )
        )
        cards = result.scalars().all()

        candidates = [
            ReviewCandidate(card_id=card.id, state=self._load_state(card))
            for card in cards
        ]
        card_ids = self.planner.plan(candidates, now, config)

        logger.info(
            f"Planned {len(card_ids)} cards for user {user_id} "
            f"({len(candidates)} eligible)"
        )
        return card_ids

    async def review_card(
        self,
        user_id: str,
        card_id: int,
        rating: Union[Rating, int, str],
        now: Optional[datetime] = None,
        config: Optional[UserSchedulingConfig] = None,
    ) -> CardReviewResponse:
        """
        Process a card review with FSRS.

        Locks the card row, computes the new state, writes the last_*
        columns, appends a ledger row and commits.

        Args:
            user_id: Reviewing user (must own the card's deck)
            card_id: Flashcard id
            rating: Rating, grade 1-4, or label
            now: Review time (default: current UTC time)
            config: Scheduling config (default: loaded from settings table)

        Returns:
            Review response with new scheduling info

        Raises:
            InvalidRating: If the rating is not recognized
            CardNotFoundError: If the card is missing or not owned by the user
        """
        rating = Rating.parse(rating)
        if now is None:
            now = _utc_now()
        if config is None:
            config = await self.get_user_config(user_id)

        result = await self.db.execute(
            select(Flashcard)
            .join(Deck, Flashcard.deck_id == Deck.id)
            .where(Flashcard.id == card_id, Deck.user_id == user_id)
            .with_for_update(of=Flashcard)
        )
        card = result.scalar_one_or_none()

        if card is None:
            raise CardNotFoundError(
                f"Flashcard {card_id} not found or user not authorized",
                details={"card_id": card_id, "user_id": user_id},
            )

        prior = self._load_state(card)
        new_state, record = self.scheduler.review(prior, rating, now, config)

        card.last_rating = rating.label
        card.last_reviewed = new_state.last_reviewed
        card.last_scheduled = new_state.due
        card.last_stability = new_state.stability
        card.last_difficulty = new_state.difficulty

        self.ledger.append(card.id, record)

        await self.db.commit()

        logger.info(
            f"Card {card.id} rated {rating.label}: "
            f"next review in {record.scheduled_days} days"
        )

        return CardReviewResponse(
            card_id=card.id,
            rating=rating,
            stability=new_state.stability,
            difficulty=new_state.difficulty,
            due=new_state.due,
            last_reviewed=new_state.last_reviewed,
            scheduled_days=record.scheduled_days,
            retrievability=record.retrievability,
        )

    async def submit_review(
        self,
        user_id: str,
        request: CardReviewRequest,
        now: Optional[datetime] = None,
    ) -> CardReviewResponse:
        """
        Process a validated review request.

        The request's rating has already been parsed by the model, so
        label aliases such as "difficult" arrive here as a Rating.
        """
        return await self.review_card(user_id, request.card_id, request.rating, now=now)

    async def get_queue_stats(
        self,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> QueueStats:
        """Count a user's cards per review queue."""
        if now is None:
            now = _utc_now()

        states = await self._load_due_dates(user_id)
        return QueueStats(**get_queue_stats(states, now))

    async def get_review_forecast(
        self,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> ReviewForecast:
        """
        Bucket a user's reviewed cards by due date.

        Buckets are relative to the start of the current day: overdue,
        today, tomorrow, the rest of the week, and later. New cards are
        not counted.
        """
        if now is None:
            now = _utc_now()

        states = await self._load_due_dates(user_id)
        return ReviewForecast(**get_review_forecast(states, now))

    async def import_cards(self, request: AnkiImportRequest) -> int:
        """
        Import cards from an Anki plain-text export into a deck.

        Fronts already present in the deck are skipped.

        Args:
            request: Deck, export text and the front/back field indices

        Returns:
            Number of cards created
        """
        deck_id = request.deck_id
        parsed = parse_anki_text(request.anki_text, request.front_idx, request.back_idx)
        if not parsed:
            return 0

        result = await self.db.execute(
            select(Flashcard.front).where(
                Flashcard.deck_id == deck_id,
                Flashcard.front.in_(list(parsed.keys())),
            )
        )
        existing = set(result.scalars().all())

        created = 0
        for front, back in parsed.items():
            if front in existing:
                continue
            self.db.add(Flashcard(deck_id=deck_id, front=front, back=back))
            created += 1

        await self.db.commit()

        logger.info(
            f"Imported {created} cards into deck {deck_id} "
            f"({len(existing)} duplicates skipped)"
        )
        return created

    async def count_reviews(self, card_id: int) -> int:
        """Number of ledger rows recorded for a card."""
        result = await self.db.execute(
            select(func.count(Review.id)).where(Review.flashcard_id == card_id)
        )
        return result.scalar() or 0

    async def _load_due_dates(self, user_id: str) -> list[MemoryState]:
        """Due-date-only states for every card the user owns."""
        result = await self.db.execute(
            select(Flashcard.last_scheduled)
            .join(Deck, Flashcard.deck_id == Deck.id)
            .where(Deck.user_id == user_id)
        )
        return [MemoryState(due=due) for due in result.scalars().all()]

    def _load_state(self, card: Flashcard) -> MemoryState:
        """
        Convert a flashcard row to a MemoryState.

        Corrupted rows are treated as new cards so the next review
        rewrites their scheduling fields.
        """
        try:
            return memory_state_from_row(card)
        except InvalidState as e:
            logger.warning(
                f"Flashcard {card.id} has invalid scheduling state ({e.message}); "
                "treating as new"
            )
            return NEW_CARD
