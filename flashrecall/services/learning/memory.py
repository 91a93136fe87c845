"""
Memory State - FSRS card learning state

Defines the per-card memory state consumed and produced by the scheduler.

Key concepts:
- Stability (S): Days until recall probability decays to 90%
- Difficulty (D): Intrinsic recall difficulty on a 1-10 scale
- Due: When the card should next be shown (None for new cards)

States are immutable values. All transitions go through the scheduler,
which constructs a new MemoryState; nothing here mutates a card.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from flashrecall.errors import InvalidState

D_MIN = 1.0
D_MAX = 10.0


@dataclass(frozen=True)
class MemoryState:
    """
    FSRS memory state for a single card.

    A never-reviewed card has stability, difficulty, due and last_reviewed
    all set to None. Use is_new() to check.

    All datetimes are expected to be timezone-aware UTC.
    """

    stability: Optional[float] = None  # Days, None for new cards
    difficulty: Optional[float] = None  # 1-10, None for new cards
    due: Optional[datetime] = None  # None means "new"
    last_reviewed: Optional[datetime] = None

    def is_new(self) -> bool:
        """Check if this card has no review history."""
        return self.stability is None and self.difficulty is None

    def validate(self) -> MemoryState:
        """
        Check the state invariants.

        Returns:
            self, so loaders can write `MemoryState(...).validate()`

        Raises:
            InvalidState: If only one of stability/difficulty is set,
                difficulty is outside [1, 10], or stability is not positive
        """
        if (self.stability is None) != (self.difficulty is None):
            raise InvalidState(
                "Stability and difficulty must both be set or both be absent",
                details={"stability": self.stability, "difficulty": self.difficulty},
            )

        if self.is_new():
            return self

        if not math.isfinite(self.difficulty) or not (
            D_MIN <= self.difficulty <= D_MAX
        ):
            raise InvalidState(
                f"Difficulty {self.difficulty} outside [{D_MIN}, {D_MAX}]",
                details={"difficulty": self.difficulty},
            )

        if not math.isfinite(self.stability) or self.stability <= 0:
            raise InvalidState(
                f"Stability {self.stability} must be positive",
                details={"stability": self.stability},
            )

        return self


NEW_CARD = MemoryState()


def memory_state_from_row(row: Any) -> MemoryState:
    """
    Build a validated MemoryState from a persisted flashcard row.

    Reads the `last_stability`, `last_difficulty`, `last_scheduled` and
    `last_reviewed` attributes, as stored by the flashcard table.

    Args:
        row: Flashcard ORM record (or any object with those attributes)

    Returns:
        Validated MemoryState

    Raises:
        InvalidState: If the stored fields violate the state invariants
    """
    return MemoryState(
        stability=row.last_stability,
        difficulty=row.last_difficulty,
        due=row.last_scheduled,
        last_reviewed=row.last_reviewed,
    ).validate()
