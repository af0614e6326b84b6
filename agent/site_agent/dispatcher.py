"""
Authenticated requests to the collector.

Handles the not-connected short circuit and the single reconnect-and-retry
cycle when the collector says the token doesn't match this site. Callers
handle queueing if they need it.

A retried request is not deduplicated against the one that was refused;
the collector has to tolerate seeing the same events twice.
"""

import enum

import requests

from .config import log
from .constants import JSON_HEADERS, INVALID_TOKEN_MESSAGE
from .http_client import create_session, parse_json
from .outcomes import Accepted, PartialFailure, Rejected, TransportError, not_connected

MAX_RECONNECT_RETRIES = 1


class RequestContext(enum.Enum):
    INLINE = "inline"            # answering a live request, short timeout
    BACKGROUND = "background"


class RequestDispatcher:
    def __init__(self, config, connection, session=None):
        self.config = config
        self.connection = connection
        self.session = session or connection.session or create_session()

    def timeout_for(self, context):
        if context is RequestContext.INLINE:
            return self.config.inline_timeout
        return self.config.background_timeout

    def dispatch(self, path, payload=None, *, method="POST",
                 context=RequestContext.BACKGROUND, accepted=(200, 201), headers=None):
        """Send one request to the collector. Returns a delivery outcome."""
        url = self.config.endpoint(path)

        for attempt in range(MAX_RECONNECT_RETRIES + 1):
            # If we're not connected, the throttled handshake will get us back eventually.
            token = self.connection.get_auth_token()
            if not token:
                return not_connected()

            request_headers = dict(JSON_HEADERS)
            request_headers.update(headers or {})
            request_headers["Authorization"] = f"Bearer {token}"

            kwargs = {"headers": request_headers, "timeout": self.timeout_for(context)}
            if payload:
                kwargs["json"] = payload

            try:
                resp = self.session.request(method, url, **kwargs)
            except requests.RequestException as e:
                log.warning("Collector %s %s network error: %s", method, path, e)
                return TransportError(type(e).__name__, str(e))

            # Token is valid for the collector but not for this site.
            if attempt < MAX_RECONNECT_RETRIES and _token_rejected(resp):
                log.warning("Collector rejected token for %s — reconnecting", path)
                if not self.connection.reconnect():
                    return not_connected()
                continue

            return _outcome(resp, accepted)

        # Unreachable: the last iteration always returns.
        return not_connected()


def _token_rejected(resp):
    if resp.status_code != 403:
        return False
    body = parse_json(resp)
    return isinstance(body, dict) and body.get("message") == INVALID_TOKEN_MESSAGE


def _outcome(resp, accepted):
    status = resp.status_code
    message = resp.reason or ""

    if status not in accepted:
        log.warning("Collector answered HTTP %d (%s)", status, message)
        return Rejected(status, message)

    body = parse_json(resp)
    if status >= 500:
        # Only meaningful when per-event results came back with it.
        if isinstance(body, dict) and ("succeededEvents" in body or "failedEvents" in body):
            return PartialFailure(
                status,
                succeeded=body.get("succeededEvents") or {},
                failed=body.get("failedEvents") or {},
                body=body,
            )
        log.warning("Collector answered HTTP %d without event results", status)
        return Rejected(status, message)

    return Accepted(status, body, message)
