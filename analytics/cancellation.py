"""
Cooperative cancellation for long-running aggregations.

Aggregators call ``token.check()`` once per report and once per day of
a dense series; when the deadline has passed or ``cancel()`` was called
the check raises ComputationTimeout and the partial result is discarded.
"""

import threading
import time

from .exceptions import ComputationTimeout


class CancellationToken:

    def __init__(self, timeout=None, clock=time.monotonic):
        self._clock = clock
        self._deadline = clock() + timeout if timeout else None
        self._cancelled = threading.Event()

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    @property
    def expired(self):
        return self._deadline is not None and self._clock() >= self._deadline

    def check(self):
        if self.cancelled:
            raise ComputationTimeout('The analytics query was cancelled.')
        if self.expired:
            raise ComputationTimeout()


def ensure_token(token):
    """Aggregators accept None and run without a deadline."""
    return token if token is not None else CancellationToken()
