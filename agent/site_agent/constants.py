"""
Constants, timeouts, collector endpoints, and the throttle schedule.
"""

AGENT_VERSION = "1.4.0"

DEFAULT_COLLECTOR_URL = "https://hiive.cloud/api"

# ─── Time units ──────────────────────────────────────────────────
MINUTE_IN_SECONDS = 60
HOUR_IN_SECONDS = 60 * MINUTE_IN_SECONDS
DAY_IN_SECONDS = 24 * HOUR_IN_SECONDS
WEEK_IN_SECONDS = 7 * DAY_IN_SECONDS

# ─── Collector endpoints ─────────────────────────────────────────
CONNECT_PATH = "/sites/v2/connect"
RECONNECT_PATH = "/sites/v2/reconnect"
EVENT_PATH = "sites/v1/events"           # single event, returns notifications
BATCH_PATH = "sites/v2/events"           # batch, may report partial failure

# ─── Network ─────────────────────────────────────────────────────
CONNECT_TIMEOUT = 30           # Handshake is blocking; collector pings the site back
INLINE_TIMEOUT = 15            # Caller is serving a live request, must be quick
BACKGROUND_TIMEOUT = 60

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

INVALID_TOKEN_MESSAGE = "Invalid token for url"

# ─── Store keys ──────────────────────────────────────────────────
VERIFY_TOKEN_KEY = "verify_token"
VERIFY_TOKEN_TTL = 5 * MINUTE_IN_SECONDS
THROTTLE_KEY = "connection_throttle"
TOKEN_KEY = "token"
ATTEMPTS_KEY = "connection_attempts"

# ─── Throttle schedule ───────────────────────────────────────────
# (max attempts inclusive, wait). Hourly for 4 hours, twice a day for
# 3 days, daily for 3 days, every 3 days for 3 times, then weekly.
THROTTLE_STEPS = (
    (4, HOUR_IN_SECONDS),
    (10, 12 * HOUR_IN_SECONDS),
    (13, DAY_IN_SECONDS),
    (16, 3 * DAY_IN_SECONDS),
)
THROTTLE_MAX_INTERVAL = WEEK_IN_SECONDS
