"""
Typed delivery outcomes.

Dispatch never raises for collector or network trouble; it returns one of
these. DeliveryError subclasses are the "error" half of every
error-or-value result in this package.
"""

from dataclasses import dataclass, field
from typing import Any

NOT_CONNECTED = "not_connected"
NOT_CONNECTED_MESSAGE = "This site is not connected to the collector."


@dataclass(frozen=True)
class Accepted:
    status: int
    body: Any = None
    message: str = ""


@dataclass(frozen=True)
class PartialFailure:
    """Batch answered with an error status but per-event results attached."""
    status: int
    succeeded: Any = field(default_factory=dict)
    failed: Any = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True)
class DeliveryError:
    code: Any
    message: str = ""

    def __str__(self):
        return f"{self.code}: {self.message}" if self.message else str(self.code)


@dataclass(frozen=True)
class Rejected(DeliveryError):
    """Collector answered, but not with an accepted status (or not connected)."""


@dataclass(frozen=True)
class TransportError(DeliveryError):
    """No HTTP response at all (DNS, refused, timeout, TLS)."""


def not_connected():
    return Rejected(NOT_CONNECTED, NOT_CONNECTED_MESSAGE)


def is_error(result) -> bool:
    return isinstance(result, DeliveryError)
