"""
Study Tracker Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures, fixed clock, in-memory stores
    ├── unit/                # Unit tests (isolated, no external dependencies)
    │   ├── test_session_timer.py  # Timer state machine and finalize retries
    │   ├── test_streaks.py        # Streak calculation
    │   └── ...
    └── integration/         # SQLite-backed repository and HTTP API tests
        ├── test_repository.py
        └── test_api.py

Running Tests:
    # Run all tests
    pytest

    # Run only unit tests
    pytest backend/tests/unit/ -v

    # Run only integration tests
    pytest -m integration
"""
