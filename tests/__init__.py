"""
BookVetting - Test Suite
========================

Structure:
    tests/
    ├── conftest.py                      - Fakes, fixtures and PDF helpers
    └── unit/
        ├── test_scorer.py               - LLM response parsing
        ├── test_evaluation_orchestrator.py - Scoring, escalation, tier reconciliation
        ├── test_storage_orchestrator.py - Temp -> active -> archived migrations
        ├── test_processors.py           - Job routing and failure marking
        ├── test_submission.py           - Submissions and PDF uploads
        └── test_job_queue.py            - Queues, retries and the worker loop

Running Tests:
    # All tests
    pytest

    # Specific test file
    pytest tests/unit/test_storage_orchestrator.py

    # Stop on first failure
    pytest -x
"""
