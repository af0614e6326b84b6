"""
Event delivery — single event (returns notifications) and batch.

Both return either a value or a DeliveryError; neither raises for
collector or network trouble.
"""

from .config import log
from .constants import EVENT_PATH, BATCH_PATH
from .dispatcher import RequestContext
from .outcomes import Accepted, PartialFailure, DeliveryError, Rejected


class EventSender:
    def __init__(self, dispatcher, core_data):
        self.dispatcher = dispatcher
        self.core_data = core_data

    def _payload(self, events):
        return {
            "environment": self.core_data.collect(),
            "events": [e.as_dict() for e in events],
        }

    def send_event(self, event, context=RequestContext.INLINE):
        """Synchronously send one event. Returns the collector's `data` record."""
        outcome = self.dispatcher.dispatch(
            EVENT_PATH, self._payload([event]), context=context, accepted=(200, 201),
        )
        if isinstance(outcome, DeliveryError):
            log.warning("Event %s/%s not delivered: %s", event.category, event.key, outcome)
            return outcome

        body = outcome.body if isinstance(outcome.body, dict) else {}
        return body.get("data") or {}

    def send_batch(self, events, context=RequestContext.BACKGROUND):
        """Send events to the batch endpoint.

        Returns the collector body, {"succeededEvents": ..., "failedEvents": ...},
        untouched, including when it came back with a 500.
        """
        events = list(events)
        outcome = self.dispatcher.dispatch(
            BATCH_PATH, self._payload(events), context=context, accepted=(200, 201, 500),
        )
        if isinstance(outcome, DeliveryError):
            log.warning("Batch of %d events not delivered: %s", len(events), outcome)
            return outcome

        if isinstance(outcome, PartialFailure):
            log.info(
                "Batch partially delivered: %d ok, %d failed",
                len(outcome.succeeded), len(outcome.failed),
            )
            return outcome.body

        if isinstance(outcome, Accepted) and isinstance(outcome.body, dict):
            return outcome.body

        log.warning("Batch response from collector was not a JSON object")
        return Rejected(outcome.status, "Malformed response body")
