"""
site_agent — Site → Collector connection & event delivery
=========================================================
Architecture: synchronous, blocking calls. No threads, no queue in the core.

  constants.py    → Version, endpoints, timeouts, store keys, throttle steps
  config.py       → Paths, logging, AgentConfig load/save, safe_print
  http_client.py  → HTTP session with retry/pooling + CA bundle
  backoff.py      → Attempt count → wait before next handshake
  storage.py      → Capability interfaces + JSON option/transient stores
  throttle.py     → ThrottleGate (lock + attempt counter)
  core_data.py    → Site snapshot + installed-package inventory
  connection.py   → ConnectionManager (connect, reconnect, verification)
  outcomes.py     → Accepted / PartialFailure / Rejected / TransportError
  dispatcher.py   → Authenticated requests + one reconnect-and-retry
  events.py       → Event record
  delivery.py     → EventSender (single event, batch)
  outbox.py       → JSON-lines queue used by the CLI
  app.py          → SiteAgent (wires everything)
  runner.py       → main() / site-agent CLI
"""

from .constants import AGENT_VERSION as __version__
from .config import AgentConfig
from .connection import ConnectionManager
from .delivery import EventSender
from .dispatcher import RequestDispatcher, RequestContext
from .events import Event
from .outcomes import Accepted, PartialFailure, DeliveryError, Rejected, TransportError, is_error

__all__ = [
    "__version__",
    "AgentConfig",
    "ConnectionManager",
    "EventSender",
    "RequestDispatcher",
    "RequestContext",
    "Event",
    "Accepted",
    "PartialFailure",
    "DeliveryError",
    "Rejected",
    "TransportError",
    "is_error",
]
