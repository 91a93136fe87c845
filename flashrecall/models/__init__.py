"""Pydantic models for data crossing the service boundary."""

from flashrecall.models.base import StrictRequest, StrictResponse
from flashrecall.models.learning import (
    AnkiImportRequest,
    CardReviewRequest,
    CardReviewResponse,
    QueueStats,
    ReviewForecast,
    SettingUpdate,
)

__all__ = [
    "StrictRequest",
    "StrictResponse",
    "AnkiImportRequest",
    "CardReviewRequest",
    "CardReviewResponse",
    "QueueStats",
    "ReviewForecast",
    "SettingUpdate",
]
