"""
Learning System Enums

Defines enums for the FSRS spaced repetition algorithm and review queues.
"""

from enum import Enum
from typing import Union

from flashrecall.errors import InvalidRating


# Labels accepted from upstream input (UI buttons, voice transcripts).
# "difficult" is the label the glasses client speaks for HARD.
_RATING_ALIASES = {
    "again": 1,
    "hard": 2,
    "difficult": 2,
    "good": 3,
    "easy": 4,
}


class Rating(int, Enum):
    """
    FSRS review ratings.

    User self-assessment after reviewing a card. Totally ordered
    AGAIN < HARD < GOOD < EASY; the integer value is used directly by
    the scheduling recurrence (e.g. `r - 3` in the difficulty update).
    """

    AGAIN = 1  # Recall failed
    HARD = 2  # Recalled with significant difficulty
    GOOD = 3  # Recalled with reasonable effort
    EASY = 4  # Recalled effortlessly

    @property
    def grade(self) -> int:
        """Numeric grade 1..4 used in the FSRS formulas."""
        return int(self.value)

    @property
    def label(self) -> str:
        """Lowercase label as persisted in the database."""
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        """Whether the rating counts as a successful recall."""
        return self is not Rating.AGAIN

    @classmethod
    def parse(cls, value: Union["Rating", int, str]) -> "Rating":
        """
        Map upstream input to a Rating.

        Accepts a Rating, an integer grade 1..4, or a case-insensitive
        label (again, hard/difficult, good, easy).

        Raises:
            InvalidRating: If the value is not one of the four ratings
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, bool):
            raise InvalidRating(f"Invalid rating: {value!r}", details={"value": value})

        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidRating(
                    f"Invalid rating grade: {value}", details={"value": value}
                ) from None

        if isinstance(value, str):
            grade = _RATING_ALIASES.get(value.strip().lower())
            if grade is not None:
                return cls(grade)

        raise InvalidRating(f"Invalid rating: {value!r}", details={"value": value})


class CardQueue(str, Enum):
    """
    Review queue a card currently belongs to.

    - NEW: never reviewed
    - DUE: scheduled date has passed (available for review)
    - LEARNING: reviewed and scheduled in the future
    """

    NEW = "new"
    DUE = "due"
    LEARNING = "learning"
