"""
Handshake backoff schedule.
"""

from .constants import THROTTLE_STEPS, THROTTLE_MAX_INTERVAL


def throttle_interval(attempts):
    """Seconds to wait before the next handshake, given attempts made so far."""
    attempts = max(0, int(attempts))
    for max_attempts, interval in THROTTLE_STEPS:
        if attempts <= max_attempts:
            return interval
    return THROTTLE_MAX_INTERVAL
