"""Services package for scheduling, session planning and review persistence."""
