"""
ThrottleGate — time-boxed lock on handshake attempts.

The lock lives in the transient store under one fixed key, so there is at
most one active lock. Its lifetime comes from the backoff schedule for the
current attempt count. Concurrent processes may race on the counter; that
only nudges the schedule by an attempt or so.
"""

from .backoff import throttle_interval
from .constants import THROTTLE_KEY, ATTEMPTS_KEY


class ThrottleGate:
    def __init__(self, transients, options):
        self.transients = transients
        self.options = options

    @property
    def attempts(self) -> int:
        try:
            return int(self.options.get(ATTEMPTS_KEY, 0) or 0)
        except (TypeError, ValueError):
            return 0

    def record_attempt(self) -> int:
        """Increment and persist the attempt counter. Returns the new count."""
        attempts = self.attempts + 1
        self.options.set(ATTEMPTS_KEY, attempts)
        return attempts

    def interval(self) -> int:
        return throttle_interval(self.attempts)

    def is_throttled(self) -> bool:
        return bool(self.transients.get(THROTTLE_KEY))

    def throttle(self):
        """Block further attempts for the current backoff interval."""
        self.transients.set(THROTTLE_KEY, True, self.interval())
