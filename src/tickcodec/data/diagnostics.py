"""Diagnostic sink for decode failures."""

from __future__ import annotations

import logging
import threading
from collections import deque

from tickcodec.constants import DEFAULT_MAX_FAILURES_RETAINED
from tickcodec.data.results import DecodeFailure

logger = logging.getLogger(__name__)


class DiagnosticSink:
    """
    Collects decode failures from any number of decoding threads.

    report() never blocks on consumers; once max_size failures are
    retained the oldest are dropped. Every report is also logged.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_FAILURES_RETAINED):
        self._failures: deque[DecodeFailure] = deque(maxlen=max_size)
        self._lock = threading.Lock()
        self._total = 0

    def report(self, failure: DecodeFailure) -> None:
        """Record a failure."""
        logger.error(f"Error generating tick: {failure.message} [{failure.line!r}]")
        with self._lock:
            self._failures.append(failure)
            self._total += 1

    def failures(self) -> list[DecodeFailure]:
        """Snapshot of retained failures, oldest first."""
        with self._lock:
            return list(self._failures)

    @property
    def total_reported(self) -> int:
        """Count of every failure reported, including dropped ones."""
        with self._lock:
            return self._total

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()
            self._total = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._failures)


_default_sink = DiagnosticSink()


def get_default_sink() -> DiagnosticSink:
    """Process-wide sink used when callers don't supply one."""
    return _default_sink
