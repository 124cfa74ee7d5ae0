"""
Exception Taxonomy Tests
==========================
Validates:
- Hierarchy and builtin compatibility
- severity / error_code class attributes
- repr carries identifiers
"""

from __future__ import annotations

import pytest

from aqueue.core.exceptions import (
    AQueueError,
    ConfigurationError,
    ErrorSeverity,
    InvalidConfigurationError,
    InvalidTaskError,
    InvalidTransitionError,
    QueueError,
    QueueStateError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type,parents",
        [
            (InvalidTaskError, (QueueError, AQueueError, TypeError)),
            (InvalidTransitionError, (QueueStateError, QueueError, AQueueError)),
            (InvalidConfigurationError, (ConfigurationError, AQueueError, ValueError)),
        ],
    )
    def test_parents(self, exc_type, parents):
        for parent in parents:
            assert issubclass(exc_type, parent)

    def test_severity_and_code(self):
        assert InvalidTaskError.severity is ErrorSeverity.LOW
        assert InvalidTransitionError.severity is ErrorSeverity.CRITICAL
        assert InvalidConfigurationError.severity is ErrorSeverity.HIGH
        assert InvalidTaskError.error_code == "INVALID_TASK_ERROR"


class TestRepr:
    def test_repr_includes_identifiers(self):
        err = InvalidTaskError("bad", queue="reports", entry_id="e-9")
        text = repr(err)

        assert "InvalidTaskError(" in text
        assert "error_code='INVALID_TASK_ERROR'" in text
        assert "queue='reports'" in text
        assert "entry_id='e-9'" in text
        assert str(err) == "bad"

    def test_repr_without_identifiers(self):
        text = repr(AQueueError("plain"))
        assert text == "AQueueError(error_code='AQUEUE_ERROR', severity='medium')"
