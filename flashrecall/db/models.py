"""
SQLAlchemy Database Models

These models define the PostgreSQL schema for decks, flashcards, the
review ledger and per-user scheduling settings.

Tables:
- deck: Named card collections owned by a user
- flashcard: Cards with their latest scheduling state (last_* columns)
- review: Append-only review ledger, one row per scheduling decision
- settings: Per-user session cap and desired retention

ARCHITECTURE NOTE:
    The scheduling core never touches these models. ReviewService converts
    rows to MemoryState / UserSchedulingConfig and back.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashrecall.db.base import Base


class Deck(Base):
    """
    A named collection of flashcards.

    Attributes:
        id: Primary key.
        name: Deck name, unique per user.
        user_id: Owning user identifier.
        flashcards: Cards in this deck (deleted with the deck).
    """

    __tablename__ = "deck"
    __table_args__ = (UniqueConstraint("name", "user_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(Text)
    user_id: Mapped[str] = mapped_column(Text, index=True)

    flashcards: Mapped[List["Flashcard"]] = relationship(
        back_populates="deck", cascade="all, delete-orphan"
    )


class Flashcard(Base):
    """
    A flashcard and its latest FSRS scheduling state.

    The last_* columns hold the outcome of the most recent review and are
    all NULL for a card that has never been reviewed.

    Attributes:
        id: Primary key.
        deck_id: Owning deck.
        front: Prompt side.
        back: Answer side.
        last_rating: Label of the most recent rating (again/hard/good/easy).
        last_reviewed: Timestamp of the most recent review.
        last_scheduled: Next due date.
        last_stability: Memory stability in days.
        last_difficulty: Difficulty on the 1-10 scale.
    """

    __tablename__ = "flashcard"
    __table_args__ = (UniqueConstraint("front", "deck_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    deck_id: Mapped[int] = mapped_column(
        ForeignKey("deck.id", ondelete="CASCADE"), index=True
    )
    front: Mapped[str] = mapped_column(Text)
    back: Mapped[str] = mapped_column(Text)

    # Scheduling state
    last_rating: Mapped[Optional[str]] = mapped_column(String(20))
    last_reviewed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_scheduled: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), index=True
    )
    last_stability: Mapped[Optional[float]] = mapped_column(Float)
    last_difficulty: Mapped[Optional[float]] = mapped_column(Float)

    deck: Mapped["Deck"] = relationship(back_populates="flashcards")
    reviews: Mapped[List["Review"]] = relationship(
        back_populates="flashcard", cascade="all, delete-orphan"
    )


class Review(Base):
    """
    Review ledger entry.

    Written once per review by SqlReviewLedger and never updated; rows
    disappear only through cascading deletion of their flashcard.

    Attributes:
        id: Primary key.
        flashcard_id: Reviewed card.
        reviewed: When the review happened.
        scheduled: Due date produced by the review.
        rating: Rating label.
        stability: Stability after the review.
        difficulty: Difficulty after the review.
    """

    __tablename__ = "review"

    id: Mapped[int] = mapped_column(primary_key=True)
    flashcard_id: Mapped[int] = mapped_column(
        ForeignKey("flashcard.id", ondelete="CASCADE"), index=True
    )
    reviewed: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    scheduled: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    rating: Mapped[str] = mapped_column(String(20))
    stability: Mapped[float] = mapped_column(Float)
    difficulty: Mapped[float] = mapped_column(Float)

    flashcard: Mapped["Flashcard"] = relationship(back_populates="reviews")


class UserSettings(Base):
    """
    Per-user scheduling settings.

    Attributes:
        user_id: Primary key.
        cards_per_day: Session cap (max cards per review session).
        desired_retention: Target retention as an integer percent (5-95).
    """

    __tablename__ = "settings"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    cards_per_day: Mapped[int] = mapped_column(Integer, default=20)
    desired_retention: Mapped[Optional[int]] = mapped_column(Integer)
