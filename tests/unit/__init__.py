"""
Unit Tests

Unit tests run in isolation without external dependencies.
The database session is mocked; no PostgreSQL server is needed.
"""
