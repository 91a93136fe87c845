"""
Centralized enum definitions for the application.

Usage:
    from flashrecall.enums import Rating, CardQueue
"""

from flashrecall.enums.learning import CardQueue, Rating

__all__ = [
    "CardQueue",
    "Rating",
]
