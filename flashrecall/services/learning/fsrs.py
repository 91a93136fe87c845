"""
FSRS (Free Spaced Repetition Scheduler) Algorithm Implementation

This module implements the FSRS-4.5 memory model used to schedule
flashcard reviews. FSRS models memory with two variables per card and
derives the next due date from a power forgetting curve.

Key Concepts:
- Stability (S): Days until recall probability decays to 90%
- Difficulty (D): Inherent difficulty of the card (1-10)
- Retrievability (R): Current recall probability based on elapsed time

Forgetting curve:
    R(t, S) = (1 + F * t / S) ^ C,   F = 19/81, C = -0.5

Interval for a desired retention r_d (solve R(I, S) = r_d):
    I = S / F * (r_d ^ (1/C) - 1)

The scheduler is a pure function of its inputs: weights are passed in
explicitly at construction, and no method reads the clock or global state.

Usage:
    from flashrecall.services.learning.fsrs import create_scheduler

    scheduler = create_scheduler()

    # First review of a new card
    state = scheduler.schedule(None, Rating.GOOD, now, config)

    # Review with audit record for the ledger
    state, record = scheduler.review(state, Rating.EASY, later, config)
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional, Sequence

from flashrecall.config.settings import load_weight_values, settings
from flashrecall.enums.learning import Rating
from flashrecall.errors import InvalidConfig, InvalidState
from flashrecall.services.learning.ledger import ReviewRecord
from flashrecall.services.learning.memory import D_MAX, D_MIN, MemoryState
from flashrecall.services.learning.user_settings import (
    UserSchedulingConfig,
    validate_retention,
)

logger = logging.getLogger(__name__)

DECAY = -0.5
FACTOR = 19 / 81
MAX_INTERVAL_DAYS = 36500
STABILITY_MIN = 0.01
STABILITY_MAX = float(MAX_INTERVAL_DAYS)
WEIGHT_COUNT = 17

DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.4, 0.6, 2.4, 5.8,  # w0-w3: initial stability per rating
    4.93, 0.94,  # w4-w5: initial difficulty
    0.86, 0.01,  # w6-w7: difficulty update, mean reversion
    1.49, 0.14, 0.94,  # w8-w10: recall stability
    2.18, 0.05, 0.34, 1.26,  # w11-w14: forget stability
    0.29, 2.61,  # w15-w16: hard penalty, easy bonus
)


@dataclass(frozen=True)
class WeightVector:
    """
    The 17 FSRS parameters w0..w16.

    Process-wide configuration: loaded once, immutable, and passed
    explicitly to the scheduler.
    """

    values: tuple[float, ...] = DEFAULT_WEIGHTS

    def __post_init__(self):
        values = tuple(self.values)
        if len(values) != WEIGHT_COUNT:
            raise InvalidConfig(
                f"FSRS weight vector needs {WEIGHT_COUNT} values, got {len(values)}",
                details={"count": len(values)},
            )
        for i, w in enumerate(values):
            if isinstance(w, bool) or not isinstance(w, (int, float)):
                raise InvalidConfig(f"Weight w{i} is not a number: {w!r}")
            if not math.isfinite(w) or w < 0:
                raise InvalidConfig(
                    f"Weight w{i} must be finite and non-negative, got {w}",
                    details={"index": i, "value": w},
                )
        if values[7] > 1:
            raise InvalidConfig(
                f"Mean reversion weight w7 must be at most 1, got {values[7]}",
                details={"index": 7, "value": values[7]},
            )
        object.__setattr__(self, "values", tuple(float(w) for w in values))

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def __len__(self) -> int:
        return len(self.values)


@lru_cache()
def get_weights() -> WeightVector:
    """Get the process-wide weight vector (configured override or defaults)."""
    values = load_weight_values()
    if values is None:
        return WeightVector()
    return WeightVector(values)


def retrievability(elapsed_days: float, stability: float) -> float:
    """
    Probability of recall after `elapsed_days` for a given stability.

    R(0, S) = 1 and R is strictly decreasing in elapsed time.

    Args:
        elapsed_days: Days since the last review (negative treated as 0)
        stability: Memory stability in days (> 0)

    Returns:
        Retrievability between 0 and 1
    """
    t = max(0.0, elapsed_days)
    return (1 + FACTOR * t / stability) ** DECAY


def next_interval(
    stability: float,
    desired_retention: float,
    maximum_interval: int = MAX_INTERVAL_DAYS,
) -> int:
    """
    Days until retrievability falls to the desired retention.

    Args:
        stability: Memory stability after the review
        desired_retention: Target recall probability in (0, 1)
        maximum_interval: Upper bound in days

    Returns:
        Interval in whole days, clamped to [1, maximum_interval]

    Raises:
        InvalidConfig: If desired_retention is outside (0, 1)
    """
    validate_retention(desired_retention)
    raw = stability / FACTOR * (desired_retention ** (1 / DECAY) - 1)
    # Clamp before rounding so huge stabilities cannot overflow round()
    interval = round(min(raw, maximum_interval))
    return max(1, min(interval, maximum_interval))


def elapsed_whole_days(last_reviewed: datetime, now: datetime) -> int:
    """Whole days between two timestamps, clamped at 0 for clock skew."""
    return max(0, (now - last_reviewed).days)


def _clamp_difficulty(value: float) -> float:
    return min(max(value, D_MIN), D_MAX)


def _clamp_stability(value: float) -> float:
    return min(max(value, STABILITY_MIN), STABILITY_MAX)


def _exp(x: float) -> float:
    """math.exp that saturates to inf instead of raising OverflowError."""
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _pow(base: float, exponent: float) -> float:
    """base ** exponent for base > 0, saturating to inf on overflow."""
    try:
        return base**exponent
    except OverflowError:
        return math.inf


def _product(*factors: float) -> float:
    """
    Product of non-negative factors that may be inf.

    Any zero factor makes the product 0, so inf * 0 never produces NaN.
    """
    if any(f == 0 for f in factors):
        return 0.0
    result = 1.0
    for f in factors:
        result *= f
    return result


class FSRSScheduler:
    """
    FSRS-4.5 scheduling engine.

    Computes the next memory state from a prior state, a rating and the
    review time. Stateless apart from its immutable weights, so one
    instance can be shared across cards and threads.

    Attributes:
        weights: FSRS parameters w0..w16
        maximum_interval: Maximum days between reviews
    """

    def __init__(
        self,
        weights: Optional[WeightVector] = None,
        maximum_interval: int = MAX_INTERVAL_DAYS,
    ):
        """
        Initialize FSRS scheduler.

        Args:
            weights: Weight vector (defaults to FSRS-4.5 defaults)
            maximum_interval: Maximum interval in days (1..36500)
        """
        if not isinstance(maximum_interval, int) or not (
            1 <= maximum_interval <= MAX_INTERVAL_DAYS
        ):
            raise InvalidConfig(
                f"maximum_interval must be in [1, {MAX_INTERVAL_DAYS}], got {maximum_interval!r}"
            )
        self.weights = weights if weights is not None else WeightVector()
        self.maximum_interval = maximum_interval

    # ---- Recurrence terms ----

    def initial_stability(self, rating: Rating) -> float:
        """S0(r) = w[r-1]."""
        return _clamp_stability(self.weights[rating.grade - 1])

    def initial_difficulty(self, rating: Rating) -> float:
        """D0(r) = clamp(w4 - (r - 3) * w5, 1, 10)."""
        w = self.weights
        return _clamp_difficulty(w[4] - (rating.grade - 3) * w[5])

    def next_difficulty(self, difficulty: float, rating: Rating) -> float:
        """Shift difficulty by rating, then mean-revert toward D0(Easy)."""
        w = self.weights
        target = self.initial_difficulty(Rating.EASY)
        if w[7] == 1:
            # Full reversion ignores the shift, which may have overflowed to inf
            return target
        shifted = difficulty - w[6] * (rating.grade - 3)
        return _clamp_difficulty(w[7] * target + (1 - w[7]) * shifted)

    def next_recall_stability(
        self,
        stability: float,
        difficulty: float,
        recall_probability: float,
        rating: Rating,
    ) -> float:
        """
        Stability after a successful review (Hard, Good or Easy).

        A recall at low retrievability grows stability more than recalling
        an already strong memory. Growth that overflows saturates at
        STABILITY_MAX.
        """
        w = self.weights
        hard_penalty = w[15] if rating == Rating.HARD else 1.0
        easy_bonus = w[16] if rating == Rating.EASY else 1.0
        growth = _product(
            _exp(w[8]),
            11 - difficulty,
            _pow(stability, -w[9]),
            _exp(w[10] * (1 - recall_probability)) - 1,
            hard_penalty,
            easy_bonus,
        )
        return _clamp_stability(stability * (growth + 1))

    def next_forget_stability(
        self,
        stability: float,
        difficulty: float,
        recall_probability: float,
    ) -> float:
        """
        Stability after a lapse (Again). Never exceeds the prior stability.
        """
        w = self.weights
        forgotten = _product(
            w[11],
            _pow(difficulty, -w[12]),
            _pow(stability + 1, w[13]) - 1,
            _exp(w[14] * (1 - recall_probability)),
        )
        return min(stability, max(forgotten, STABILITY_MIN))

    # ---- Public API ----

    def schedule(
        self,
        prior: Optional[MemoryState],
        rating: Rating,
        now: datetime,
        config: UserSchedulingConfig,
    ) -> MemoryState:
        """
        Compute the next memory state for a review.

        Args:
            prior: Current state, or None for a card's first review
            rating: User's self-assessed recall (Again/Hard/Good/Easy)
            now: Review timestamp
            config: User scheduling configuration

        Returns:
            New MemoryState with due = now + interval and last_reviewed = now

        Raises:
            InvalidRating: If rating is not one of the four ratings
            InvalidConfig: If desired retention is outside (0, 1)
            InvalidState: If the prior state is corrupted
        """
        state, _ = self.review(prior, rating, now, config)
        return state

    def review(
        self,
        prior: Optional[MemoryState],
        rating: Rating,
        now: datetime,
        config: UserSchedulingConfig,
    ) -> tuple[MemoryState, ReviewRecord]:
        """
        Process a review and build the matching ledger record.

        First review (no prior history):
            S = w[r-1], D = D0(r)

        Subsequent review, t = whole days since last review (>= 0):
            R   = (1 + F*t/S)^C
            D'' = clamp(w7*D0(Easy) + (1-w7)*(D - w6*(r-3)), 1, 10)
            S'  = recall or forget stability depending on the rating

        Next interval from desired retention r_d:
            I = clamp(round(S'/F * (r_d^(1/C) - 1)), 1, maximum_interval)

        Args:
            prior: Current state, or None for a card's first review
            rating: User's self-assessed recall
            now: Review timestamp
            config: User scheduling configuration

        Returns:
            Tuple of (new MemoryState, ReviewRecord)
        """
        rating = Rating.parse(rating)
        desired_retention = validate_retention(config.desired_retention)

        if prior is not None:
            prior.validate()

        if prior is None or prior.is_new():
            stability = self.initial_stability(rating)
            difficulty = self.initial_difficulty(rating)
            elapsed_days = None
            recall_probability = None
        else:
            if prior.last_reviewed is None:
                raise InvalidState(
                    "Reviewed card has no last_reviewed timestamp",
                    details={"stability": prior.stability},
                )
            elapsed_days = elapsed_whole_days(prior.last_reviewed, now)
            recall_probability = retrievability(elapsed_days, prior.stability)
            difficulty = self.next_difficulty(prior.difficulty, rating)
            if not rating.is_success:
                stability = self.next_forget_stability(
                    prior.stability, difficulty, recall_probability
                )
            else:
                stability = self.next_recall_stability(
                    prior.stability, difficulty, recall_probability, rating
                )

        interval = next_interval(stability, desired_retention, self.maximum_interval)
        due = now + timedelta(days=interval)

        logger.debug(
            f"FSRS review: rating={rating.label} elapsed={elapsed_days} "
            f"R={recall_probability} S={stability:.4f} D={difficulty:.4f} "
            f"interval={interval}d"
        )

        new_state = MemoryState(
            stability=stability,
            difficulty=difficulty,
            due=due,
            last_reviewed=now,
        )

        record = ReviewRecord(
            reviewed_at=now,
            scheduled_for=due,
            rating=rating,
            stability_after=stability,
            difficulty_after=difficulty,
            stability_before=prior.stability if prior is not None else None,
            difficulty_before=prior.difficulty if prior is not None else None,
            elapsed_days=elapsed_days,
            retrievability=recall_probability,
            scheduled_days=interval,
        )

        return new_state, record

    def get_retrievability(self, state: MemoryState, now: datetime) -> float:
        """
        Current recall probability for a card.

        Args:
            state: Card memory state
            now: Reference time

        Returns:
            Probability of recall (0.0 to 1.0). New cards return 1.0.
        """
        if state.is_new() or state.last_reviewed is None:
            return 1.0
        return retrievability(elapsed_whole_days(state.last_reviewed, now), state.stability)


def create_scheduler(
    weights: Optional[Sequence[float]] = None,
    max_interval: Optional[int] = None,
) -> FSRSScheduler:
    """
    Create a configured FSRS scheduler.

    Args:
        weights: Explicit weights (default: process-wide weight vector)
        max_interval: Maximum interval in days
            (default: settings.FSRS_MAX_INTERVAL_DAYS)

    Returns:
        Configured FSRSScheduler instance
    """
    weight_vector = WeightVector(tuple(weights)) if weights is not None else get_weights()
    return FSRSScheduler(
        weights=weight_vector,
        maximum_interval=max_interval or settings.FSRS_MAX_INTERVAL_DAYS,
    )
