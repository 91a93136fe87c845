"""
Session Planner

Turns a pool of cards into a bounded, ordered review queue. This is a
read-side policy over caller-supplied rows: it never mutates anything,
so it can be called repeatedly and unit-tested without a database.

Selection:
    A card is eligible if it is new (due is None) or due <= now.

Ordering:
    Ascending due date, with new cards sorted as if due "now". New cards
    follow due cards of the same instant; remaining ties are broken by
    card_id for determinism. Overdue cards surface first to bound backlog
    growth.

Truncation:
    The earliest cards up to config.max_cards_per_session are kept.

Usage:
    planner = SessionPlanner()
    card_ids = planner.plan(
        [ReviewCandidate(card_id=1, state=state), ...],
        now=datetime.now(timezone.utc),
        config=UserSchedulingConfig(),
    )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Hashable, Iterable, Sequence, Union

from flashrecall.enums.learning import CardQueue
from flashrecall.services.learning.memory import MemoryState
from flashrecall.services.learning.user_settings import UserSchedulingConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewCandidate:
    """A card considered for a review session."""

    card_id: Hashable
    state: MemoryState

    @property
    def is_new(self) -> bool:
        return self.state.due is None


Candidate = Union[ReviewCandidate, tuple[Hashable, MemoryState]]


def _as_candidate(item: Candidate) -> ReviewCandidate:
    if isinstance(item, ReviewCandidate):
        return item
    card_id, state = item
    return ReviewCandidate(card_id=card_id, state=state)


def classify(state: MemoryState, now: datetime) -> CardQueue:
    """Queue a card belongs to at `now`."""
    if state.due is None:
        return CardQueue.NEW
    if state.due <= now:
        return CardQueue.DUE
    return CardQueue.LEARNING


class SessionPlanner:
    """Stateless selection and ordering of review sessions."""

    def plan(
        self,
        candidates: Iterable[Candidate],
        now: datetime,
        config: UserSchedulingConfig,
    ) -> list[Any]:
        """
        Select and order the cards to present in one session.

        Args:
            candidates: ReviewCandidate values or (card_id, MemoryState) pairs
            now: Reference time
            config: User config (max_cards_per_session caps the result)

        Returns:
            Ordered card ids, at most config.max_cards_per_session long

        Raises:
            InvalidConfig: If the session cap is not positive
        """
        config.validate()

        eligible = [
            candidate
            for candidate in map(_as_candidate, candidates)
            if classify(candidate.state, now) != CardQueue.LEARNING
        ]

        eligible.sort(
            key=lambda c: (
                c.state.due if c.state.due is not None else now,
                c.is_new,
                c.card_id,
            )
        )

        selected = eligible[: config.max_cards_per_session]

        logger.debug(
            f"Planned session: {len(selected)} of {len(eligible)} eligible cards "
            f"(cap={config.max_cards_per_session})"
        )

        return [c.card_id for c in selected]


def plan_session(
    candidates: Iterable[Candidate],
    now: datetime,
    config: UserSchedulingConfig,
) -> list[Any]:
    """Module-level shortcut for SessionPlanner().plan()."""
    return SessionPlanner().plan(candidates, now, config)


def get_queue_stats(states: Sequence[MemoryState], now: datetime) -> dict[str, int]:
    """
    Count cards per review queue.

    Args:
        states: Card memory states
        now: Reference time

    Returns:
        Dict with counts: new_count, for_review_count, learning_count
    """
    stats = {
        "new_count": 0,
        "for_review_count": 0,
        "learning_count": 0,
    }

    for state in states:
        queue = classify(state, now)
        if queue == CardQueue.NEW:
            stats["new_count"] += 1
        elif queue == CardQueue.DUE:
            stats["for_review_count"] += 1
        else:
            stats["learning_count"] += 1

    return stats


def get_review_forecast(
    states: Sequence[MemoryState],
    as_of: datetime,
) -> dict[str, int]:
    """
    Get forecast of upcoming reviews.

    Args:
        states: Card memory states
        as_of: Reference time

    Returns:
        Dict with counts: overdue, today, tomorrow, this_week, later
    """
    today_start = as_of.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow_start = today_start + timedelta(days=1)
    week_end = today_start + timedelta(days=7)

    forecast = {
        "overdue": 0,
        "today": 0,
        "tomorrow": 0,
        "this_week": 0,
        "later": 0,
    }

    for state in states:
        if state.due is None:
            continue

        if state.due < today_start:
            forecast["overdue"] += 1
        elif state.due < tomorrow_start:
            forecast["today"] += 1
        elif state.due < tomorrow_start + timedelta(days=1):
            forecast["tomorrow"] += 1
        elif state.due < week_end:
            forecast["this_week"] += 1
        else:
            forecast["later"] += 1

    return forecast
