#!/usr/bin/env python3
"""
Schedule Preview

Replay a sequence of reviews for one card and print the FSRS state after
each step. Useful for checking weight overrides and retention settings
without touching the database.

Usage:
    # Review a new card Good, then Good 3 days later, then Again 10 days later
    python scripts/preview_schedule.py good:0 good:3 again:10

    # Different retention and session settings
    python scripts/preview_schedule.py good:0 easy:8 --retention 0.9

    # Custom weights file (YAML with a top-level `weights` list)
    FSRS_WEIGHTS_FILE=weights.yaml python scripts/preview_schedule.py good:0

Each step is RATING:DAYS, where DAYS is the gap since the previous step
(the first gap is ignored) and RATING is again/hard/good/easy or 1-4.

Environment Variables (set in .env or environment):
    - FSRS_DEFAULT_RETENTION: Default desired retention (default: 0.75)
    - FSRS_MAX_INTERVAL_DAYS: Maximum interval in days
    - FSRS_WEIGHTS_FILE: Optional weight override file
    - DEBUG: Enable verbose logging
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

# Add project root to path for imports (must be before flashrecall.* imports)
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# App imports (after sys.path setup and env loading)
from flashrecall.config import settings
from flashrecall.enums import Rating
from flashrecall.errors import SchedulingError
from flashrecall.services.learning.fsrs import create_scheduler
from flashrecall.services.learning.ledger import InMemoryReviewLedger
from flashrecall.services.learning.memory import MemoryState
from flashrecall.services.learning.user_settings import UserSchedulingConfig


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_step(text: str) -> tuple[Rating, int]:
    """Parse a RATING:DAYS step."""
    rating_text, _, days_text = text.partition(":")
    rating = Rating.parse(int(rating_text) if rating_text.isdigit() else rating_text)
    days = int(days_text) if days_text else 0
    if days < 0:
        raise ValueError(f"Negative gap in step: {text}")
    return rating, days


def format_state(state: MemoryState, now: datetime) -> str:
    due_in = (state.due - now).days if state.due else None
    return (
        f"S={state.stability:8.3f}  D={state.difficulty:5.2f}  "
        f"next review in {due_in} days"
    )


def run(
    steps: list[str],
    retention: Optional[float],
    max_interval: Optional[int],
) -> int:
    scheduler = create_scheduler(max_interval=max_interval)
    config = UserSchedulingConfig(
        desired_retention=(
            retention if retention is not None else settings.FSRS_DEFAULT_RETENTION
        )
    )
    ledger = InMemoryReviewLedger()

    print(f"\n📇 FSRS preview (retention={config.desired_retention:.2f}, "
          f"max interval={scheduler.maximum_interval}d)\n")

    state: Optional[MemoryState] = None
    now = datetime.now(timezone.utc)

    for i, step in enumerate(steps):
        rating, gap = parse_step(step)
        if i > 0:
            now = now + timedelta(days=gap)

        state, record = scheduler.review(state, rating, now, config)
        ledger.append("preview", record)

        recall = (
            f"R={record.retrievability:.3f}"
            if record.retrievability is not None
            else "first review"
        )
        print(f"  {i + 1:>2}. day {gap:>4}  {rating.label:<6} {recall:<14} "
              f"{format_state(state, now)}")

    print(f"\n✅ {len(ledger)} reviews recorded")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Preview FSRS scheduling for a sequence of reviews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("steps", nargs="+", help="Review steps as RATING:DAYS")
    parser.add_argument(
        "--retention", type=float, default=None, help="Desired retention in (0, 1)"
    )
    parser.add_argument(
        "--max-interval", type=int, default=None, help="Maximum interval in days"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    setup_logging(args.debug or settings.DEBUG)

    try:
        return run(args.steps, args.retention, args.max_interval)
    except (SchedulingError, ValueError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
