"""
Local persistence — options (credential, attempt counter) and transients.

Both stores are small JSON files in the data dir. Transients carry an
expiry timestamp per key and read as absent once expired.

The Protocol classes describe what the connection core needs from its
collaborators; anything with the same methods can be injected instead.
"""

import os
import json
import time
import tempfile
from pathlib import Path
from typing import Protocol

from .config import log


# ─── Capability interfaces ───────────────────────────────────────

class CredentialStore(Protocol):
    def get(self, key, default=None): ...
    def set(self, key, value): ...
    def delete(self, key): ...


class EphemeralStore(Protocol):
    def get(self, key): ...
    def set(self, key, value, ttl): ...
    def delete(self, key): ...


class PluginInventoryProvider(Protocol):
    def collect(self) -> list: ...


class CoreDataProvider(Protocol):
    def collect(self) -> dict: ...


# ─── JSON file helpers ───────────────────────────────────────────

def _read_json(path):
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Store %s unreadable (%s), starting empty", path.name, e)
        return {}
    if not isinstance(data, dict):
        log.warning("Store %s is not a JSON object, starting empty", path.name)
        return {}
    return data


def _write_json(path, data):
    """Write via temp file + rename so a crash never leaves half a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, path)
    except OSError:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


# ─── Options (persistent) ────────────────────────────────────────

class JsonFileStore:
    """Persistent key/value options backed by a JSON object file."""

    def __init__(self, path):
        self.path = Path(path)

    def get(self, key, default=None):
        return _read_json(self.path).get(key, default)

    def set(self, key, value):
        data = _read_json(self.path)
        data[key] = value
        _write_json(self.path, data)

    def delete(self, key):
        data = _read_json(self.path)
        if key in data:
            del data[key]
            _write_json(self.path, data)


# ─── Transients (expiring) ───────────────────────────────────────

class JsonTransientStore:
    """Expiring key/value entries: {key: {"value": ..., "expires": ts}}."""

    def __init__(self, path, clock=time.time):
        self.path = Path(path)
        self._clock = clock

    def _live(self):
        """Load entries, dropping expired ones. Returns (entries, pruned)."""
        now = self._clock()
        data = _read_json(self.path)
        live = {
            k: v for k, v in data.items()
            if isinstance(v, dict) and v.get("expires", 0) > now
        }
        return live, len(live) != len(data)

    def get(self, key):
        entries, pruned = self._live()
        if pruned:
            _write_json(self.path, entries)
        entry = entries.get(key)
        return entry["value"] if entry else None

    def set(self, key, value, ttl):
        entries, _ = self._live()
        entries[key] = {"value": value, "expires": self._clock() + ttl}
        _write_json(self.path, entries)

    def delete(self, key):
        entries, pruned = self._live()
        if key in entries or pruned:
            entries.pop(key, None)
            _write_json(self.path, entries)
