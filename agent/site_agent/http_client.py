"""
HTTP session with connection pooling and CA bundle selection.

Collector calls are sent exactly once per request: no adapter-level retries
on status or on dropped connections. Handshake throttling and the single
reconnect-on-403 cycle in connection.py / dispatcher.py are the only
repeat paths.
"""

import os

import certifi
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

_retry_strategy = Retry(
    total=0,                                    # One send per call, never re-POST
    raise_on_status=False,                      # Hand back the response as-is
)


def _get_ca_bundle():
    """Get the CA bundle path.

    Priority: env var → certifi.
    """
    env_ca = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")
    if env_ca and os.path.isfile(env_ca):
        return env_ca
    return certifi.where()


def create_session():
    """Create a new requests.Session with connection pooling and TLS."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=3,
        max_retries=_retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = _get_ca_bundle()
    return session


def parse_json(resp):
    """Decoded JSON body of a response, or None when it isn't JSON."""
    try:
        return resp.json()
    except ValueError:
        return None
