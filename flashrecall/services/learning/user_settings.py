"""
User Scheduling Settings

Per-user knobs read by the scheduler and session planner:
- desired_retention: target recall probability when a card becomes due
- max_cards_per_session: cap on cards presented in one review session

Settings are stored as integers (cards_per_day, retention percent 5-95)
and converted here. Updates pushed by the glasses platform arrive as a
list of {"key": ..., "value": ...} objects; invalid values are ignored
and logged rather than applied.

Usage:
    config = UserSchedulingConfig.from_stored(cards_per_day=30, retention_percent=80)
    config = apply_settings_update(config, [{"key": "desired_retention", "value": 90}])
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from pydantic import ValidationError

from flashrecall.config.settings import settings
from flashrecall.errors import InvalidConfig
from flashrecall.models.learning import SettingUpdate

logger = logging.getLogger(__name__)

MAX_CARDS_SETTING_KEY = "max_cards_per_session"
RETENTION_SETTING_KEY = "desired_retention"


@dataclass(frozen=True)
class UserSchedulingConfig:
    """
    Scheduling configuration for one user.

    Read-only to the engine. Defaults come from settings
    (FSRS_DEFAULT_RETENTION, SESSION_DEFAULT_CARD_LIMIT).
    """

    desired_retention: float = field(
        default_factory=lambda: settings.FSRS_DEFAULT_RETENTION
    )
    max_cards_per_session: int = field(
        default_factory=lambda: settings.SESSION_DEFAULT_CARD_LIMIT
    )

    def __post_init__(self):
        self.validate()

    def validate(self) -> UserSchedulingConfig:
        """
        Check configuration bounds.

        Raises:
            InvalidConfig: If retention is outside (0, 1) or the session
                cap is not a positive integer
        """
        validate_retention(self.desired_retention)

        cap = self.max_cards_per_session
        if isinstance(cap, bool) or not isinstance(cap, int) or cap <= 0:
            raise InvalidConfig(
                f"max_cards_per_session must be a positive integer, got {cap!r}",
                details={"max_cards_per_session": cap},
            )
        return self

    @classmethod
    def from_stored(
        cls,
        cards_per_day: Optional[int] = None,
        retention_percent: Optional[int] = None,
    ) -> UserSchedulingConfig:
        """
        Build a config from persisted settings values.

        Args:
            cards_per_day: Stored session cap (None uses the default)
            retention_percent: Stored retention as an integer percent
                (None uses the default)

        Returns:
            Validated UserSchedulingConfig

        Raises:
            InvalidConfig: If a stored value is out of range
        """
        kwargs: dict[str, Any] = {}
        if cards_per_day is not None:
            kwargs["max_cards_per_session"] = cards_per_day
        if retention_percent is not None:
            kwargs["desired_retention"] = retention_from_percent(retention_percent)
        return cls(**kwargs)

    @property
    def retention_percent(self) -> int:
        """Desired retention as an integer percent, as stored."""
        return round(self.desired_retention * 100)


def validate_retention(desired_retention: float) -> float:
    """
    Check that a desired retention lies strictly between 0 and 1.

    Raises:
        InvalidConfig: If it does not
    """
    if (
        isinstance(desired_retention, bool)
        or not isinstance(desired_retention, (int, float))
        or not math.isfinite(desired_retention)
        or not (0.0 < desired_retention < 1.0)
    ):
        raise InvalidConfig(
            f"desired_retention must be in (0, 1), got {desired_retention!r}",
            details={"desired_retention": desired_retention},
        )
    return float(desired_retention)


def retention_from_percent(percent: int) -> float:
    """
    Convert a stored retention percent to a probability.

    Raises:
        InvalidConfig: If the percent is outside the stored range
    """
    low, high = settings.RETENTION_PERCENT_MIN, settings.RETENTION_PERCENT_MAX
    if isinstance(percent, bool) or not isinstance(percent, int) or not (
        low <= percent <= high
    ):
        raise InvalidConfig(
            f"Retention percent must be an integer in [{low}, {high}], got {percent!r}",
            details={"retention_percent": percent},
        )
    return percent / 100.0


def _int_in_range(value: Any, low: int, high: int) -> Optional[int]:
    """Return value if it is an integer within [low, high], else None."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if low <= value <= high:
        return value
    return None


def apply_settings_update(
    config: UserSchedulingConfig,
    payload: Any,
) -> UserSchedulingConfig:
    """
    Apply a settings update payload to a config.

    The payload is a list of {"key": ..., "value": ...} objects. Recognized
    keys are `max_cards_per_session` (1 to SESSION_MAX_CARD_LIMIT) and
    `desired_retention` (integer percent within the stored range). Values
    outside their range are ignored with a warning; unknown keys are skipped.

    Args:
        config: Current configuration
        payload: Settings update payload

    Returns:
        New UserSchedulingConfig (the input is not modified)
    """
    if not isinstance(payload, list):
        logger.warning(f"Ignoring settings update with non-list payload: {payload!r}")
        return config

    updates: dict[str, Any] = {}
    for entry in payload:
        try:
            setting = SettingUpdate.model_validate(entry)
        except ValidationError:
            logger.warning(f"Ignoring malformed settings entry: {entry!r}")
            continue
        key, value = setting.key, setting.value

        if key == MAX_CARDS_SETTING_KEY:
            cap = _int_in_range(value, 1, settings.SESSION_MAX_CARD_LIMIT)
            if cap is None:
                logger.warning(f"Invalid max cards per session: {value!r}")
                continue
            updates["max_cards_per_session"] = cap

        elif key == RETENTION_SETTING_KEY:
            percent = _int_in_range(
                value, settings.RETENTION_PERCENT_MIN, settings.RETENTION_PERCENT_MAX
            )
            if percent is None:
                logger.warning(f"Invalid desired retention: {value!r}")
                continue
            updates["desired_retention"] = retention_from_percent(percent)

    if not updates:
        return config

    logger.debug(f"Applying settings update: {updates}")
    return replace(config, **updates)
