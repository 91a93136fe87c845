"""
FlashRecall

FSRS spaced repetition engine: memory model, scheduler, review ledger
and session planner, with an async PostgreSQL persistence layer.
"""

__version__ = "0.1.0"
