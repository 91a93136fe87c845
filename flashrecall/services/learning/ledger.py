"""
Review Ledger

Append-only record of scheduling decisions. Each review produces one
ReviewRecord capturing what the scheduler was given and what it decided,
so past decisions can be audited and weights re-estimated later.

The ledger is a write-only sink: the core contract has no read or query
behavior. Records are immutable once written and belong to exactly one card.

Implementations:
- InMemoryReviewLedger: keeps records in process (tests, embedded callers)
- SqlReviewLedger (review_service): stages rows on an AsyncSession
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Hashable, Optional

from flashrecall.enums.learning import Rating


@dataclass(frozen=True)
class ReviewRecord:
    """
    Log entry for a single review.

    The first five fields are the persisted shape of the review table;
    the rest are audit extras (None on a card's first review).
    """

    reviewed_at: datetime
    scheduled_for: datetime  # Due date produced by this review
    rating: Rating
    stability_after: float
    difficulty_after: float

    stability_before: Optional[float] = None
    difficulty_before: Optional[float] = None
    elapsed_days: Optional[int] = None
    retrievability: Optional[float] = None  # Recall probability at review time
    scheduled_days: Optional[int] = None


class ReviewLedger(ABC):
    """Write-only sink for review records."""

    @abstractmethod
    def append(self, card_id: Hashable, record: ReviewRecord) -> None:
        """Append a record for a card. Never updates existing records."""


class InMemoryReviewLedger(ReviewLedger):
    """Ledger that keeps (card_id, record) pairs in insertion order."""

    def __init__(self):
        self._entries: list[tuple[Hashable, ReviewRecord]] = []

    def append(self, card_id: Hashable, record: ReviewRecord) -> None:
        self._entries.append((card_id, record))

    @property
    def entries(self) -> tuple[tuple[Hashable, ReviewRecord], ...]:
        """Snapshot of appended entries."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
