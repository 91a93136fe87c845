"""
FlashRecall Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    └── unit/                # Unit tests (isolated, no external dependencies)
        ├── test_fsrs.py     # Scheduler recurrence and intervals
        ├── test_session_planner.py
        ├── test_review_service.py  # Database adapter (mocked session)
        └── ...

Running Tests:
    # Run all tests
    pytest tests/ -v

    # Run with coverage
    pytest tests/ --cov=flashrecall --cov-report=html
"""
