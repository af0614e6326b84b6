"""
Collector handshake: connect, reconnect, site verification.

connect() is blocking. The collector calls back into the site with the
verification token before it answers, so the token must be stored before
the request goes out. Every failure path returns False; nothing here raises
for network or decode errors.
"""

import secrets

import requests

from .config import log
from .constants import (
    CONNECT_PATH,
    RECONNECT_PATH,
    JSON_HEADERS,
    TOKEN_KEY,
    VERIFY_TOKEN_KEY,
    VERIFY_TOKEN_TTL,
)
from .http_client import create_session, parse_json
from .storage import CredentialStore, EphemeralStore, CoreDataProvider, PluginInventoryProvider
from .throttle import ThrottleGate


class ConnectionManager:
    """Owns the bearer credential and the handshake that produces it."""

    def __init__(self, config, options: CredentialStore, transients: EphemeralStore,
                 core_data: CoreDataProvider, inventory: PluginInventoryProvider = None,
                 session=None, gate=None):
        self.config = config
        self.options = options
        self.transients = transients
        self.core_data = core_data
        self.inventory = inventory
        self.session = session or create_session()
        self.gate = gate or ThrottleGate(transients, options)

    # ─── Credential ──────────────────────────────────────────────

    def get_auth_token(self):
        """Current bearer token, or None when the site isn't connected."""
        return self.options.get(TOKEN_KEY) or None

    def is_connected(self) -> bool:
        return bool(self.get_auth_token())

    def forget_token(self):
        """Drop the credential (collector said it's no longer valid)."""
        self.options.delete(TOKEN_KEY)
        log.warning("Collector credential cleared — site is disconnected")

    # ─── Verification ────────────────────────────────────────────

    def verify_token(self, token) -> bool:
        """Match-and-consume the pending verification token."""
        saved = self.transients.get(VERIFY_TOKEN_KEY)
        if not saved or not token:
            return False
        if secrets.compare_digest(str(saved).encode(), str(token).encode()):
            self.transients.delete(VERIFY_TOKEN_KEY)
            return True
        return False

    def verify_request(self, params):
        """Handle a verification callback. Returns (body, http_status).

        Shared by whichever transport exposes verification (REST route or
        a fallback callback URL).
        """
        token = (params or {}).get("token") or ""
        valid = self.verify_token(token)
        return {"token": token, "valid": valid}, (200 if valid else 400)

    # ─── Handshake ───────────────────────────────────────────────

    def connect(self, path=CONNECT_PATH, authorization=None) -> bool:
        """Attempt a handshake. Returns True once a new token is stored."""
        if self.gate.is_throttled():
            log.debug("Connect skipped — throttled")
            return False

        self.gate.throttle()

        verify_token = secrets.token_hex(16)
        self.transients.set(VERIFY_TOKEN_KEY, verify_token, VERIFY_TOKEN_TTL)

        body = dict(self.core_data.collect())
        body["verify_token"] = verify_token
        if self.inventory is not None:
            body["plugins"] = self.inventory.collect()

        headers = dict(JSON_HEADERS)
        if authorization:
            headers["Authorization"] = authorization

        attempts = self.gate.record_attempt()
        url = self.config.endpoint(path)
        log.info("Connecting to collector (%s, attempt %d) ...", path, attempts)

        try:
            resp = self.session.post(
                url, json=body, headers=headers, timeout=self.config.connect_timeout,
            )
        except requests.RequestException as e:
            log.warning("Connect network error: %s", e)
            return False

        # Created = 201; Updated = 200
        if resp.status_code in (200, 201):
            data = parse_json(resp)
            token = data.get("token") if isinstance(data, dict) else None
            if token:
                self.options.set(TOKEN_KEY, token)
                log.info("Connected to collector (%s)", path)
                return True
            log.warning("Connect response had no token (HTTP %d)", resp.status_code)
            return False

        log.warning("Connect failed: HTTP %d — %s", resp.status_code, resp.text[:200])
        return False

    def reconnect(self) -> bool:
        """Re-handshake proving ownership with the current token."""
        return self.connect(RECONNECT_PATH, f"Bearer {self.get_auth_token() or ''}")
