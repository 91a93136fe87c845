"""
Scheduling Errors

Structured exceptions raised by the scheduling core and its persistence
adapter. All of them are local validation failures: nothing here is
transient, so none of them carry retry semantics.

Exception hierarchy:
    SchedulingError
    ├── InvalidRating      rating outside {again, hard, good, easy}
    ├── InvalidConfig      retention outside (0, 1), cap <= 0, bad weights
    ├── InvalidState       corrupted persisted memory state
    └── CardNotFoundError  card missing or not owned by the user

Usage:
    from flashrecall.errors import InvalidRating

    raise InvalidRating("Unknown rating", details={"value": text})
"""

from typing import Optional


class SchedulingError(Exception):
    """
    Base exception for scheduling errors.

    Provides consistent error handling with:
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise SchedulingError("Something went wrong", details={"card_id": 7})
    """

    error_code: str = "scheduling_error"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details


class InvalidRating(SchedulingError):
    """
    Rating outside the four-symbol set.

    A caller or integration bug; input should be rejected before it
    reaches the engine.
    """

    error_code = "invalid_rating"


class InvalidConfig(SchedulingError):
    """
    Invalid scheduling configuration.

    Raised for desired retention outside (0, 1), a non-positive session
    cap, or a malformed weight vector.
    """

    error_code = "invalid_config"


class InvalidState(SchedulingError):
    """
    Corrupted memory state.

    Raised when a loaded state has difficulty outside [1, 10], a
    non-positive stability, or only one of stability/difficulty set.
    Callers may treat it as a data-repair signal.
    """

    error_code = "invalid_state"


class CardNotFoundError(SchedulingError):
    """Card does not exist or is not owned by the requesting user."""

    error_code = "not_found"
