"""
Learning System Services

Services for the FSRS-based spaced repetition engine.

Modules:
- memory: Per-card memory state
- fsrs: FSRS-4.5 scheduling engine
- ledger: Append-only review records
- session_planner: Review session selection and ordering
- user_settings: Per-user retention and session cap
- importer: Anki plain-text import
- review_service: Database-backed review processing

Usage:
    from flashrecall.services.learning import (
        FSRSScheduler,
        MemoryState,
        ReviewService,
        SessionPlanner,
        UserSchedulingConfig,
    )
"""

from flashrecall.services.learning.fsrs import (
    FSRSScheduler,
    WeightVector,
    create_scheduler,
    get_weights,
    next_interval,
    retrievability,
)
from flashrecall.services.learning.importer import parse_anki_text
from flashrecall.services.learning.ledger import (
    InMemoryReviewLedger,
    ReviewLedger,
    ReviewRecord,
)
from flashrecall.services.learning.memory import NEW_CARD, MemoryState
from flashrecall.services.learning.review_service import ReviewService, SqlReviewLedger
from flashrecall.services.learning.session_planner import (
    ReviewCandidate,
    SessionPlanner,
    get_queue_stats,
    get_review_forecast,
    plan_session,
)
from flashrecall.services.learning.user_settings import (
    UserSchedulingConfig,
    apply_settings_update,
)

__all__ = [
    # FSRS
    "FSRSScheduler",
    "WeightVector",
    "create_scheduler",
    "get_weights",
    "next_interval",
    "retrievability",
    # State and ledger
    "MemoryState",
    "NEW_CARD",
    "ReviewRecord",
    "ReviewLedger",
    "InMemoryReviewLedger",
    # Planning
    "ReviewCandidate",
    "SessionPlanner",
    "plan_session",
    "get_queue_stats",
    "get_review_forecast",
    # Settings
    "UserSchedulingConfig",
    "apply_settings_update",
    # Import
    "parse_anki_text",
    # Services
    "ReviewService",
    "SqlReviewLedger",
]
