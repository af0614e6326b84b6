"""
Paths, logging setup, config load/save, safe_print.
"""

import os
import sys
import json
import logging
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path

from .constants import (
    DEFAULT_COLLECTOR_URL,
    CONNECT_TIMEOUT,
    INLINE_TIMEOUT,
    BACKGROUND_TIMEOUT,
)


# ─── Paths ───────────────────────────────────────────────────────
# One data dir per site. Holds config, credential, transients, outbox, log.
_FOLDER_NAME = "site-agent"

if sys.platform == "win32":
    DEFAULT_DATA_DIR = Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData")) / _FOLDER_NAME
else:
    DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / _FOLDER_NAME

CONFIG_FILE_NAME = "config.json"
OPTIONS_FILE_NAME = "options.json"
TRANSIENTS_FILE_NAME = "transients.json"
OUTBOX_FILE_NAME = "pending.jsonl"
LOG_FILE_NAME = "agent.log"

LOG_MAX_BYTES = 1_000_000
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

log = logging.getLogger("site_agent")


# ─── Safe print (no crash without a console) ─────────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except Exception:
        pass


# ─── Logging ─────────────────────────────────────────────────────

def setup_logging(log_file=None, level=logging.INFO):
    """Attach file + console handlers to the agent logger.

    The log file is truncated once it grows past LOG_MAX_BYTES.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    log.setLevel(level)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        try:
            if log_file.exists() and log_file.stat().st_size > LOG_MAX_BYTES:
                log_file.write_text("")
        except OSError:
            pass
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    log.addHandler(console_handler)
    return log


# ─── Config ──────────────────────────────────────────────────────

@dataclass
class AgentConfig:
    collector_url: str = DEFAULT_COLLECTOR_URL
    site_url: str = ""
    admin_email: str = ""
    brand: str = "site-agent"
    origin: str = "error"
    plugin_version: str = "0"

    # ── Timeouts (seconds) ────────────────────────────────────
    connect_timeout: float = CONNECT_TIMEOUT
    inline_timeout: float = INLINE_TIMEOUT
    background_timeout: float = BACKGROUND_TIMEOUT

    # ── Local state ───────────────────────────────────────────
    data_dir: str = str(DEFAULT_DATA_DIR)
    package_prefixes: list = field(default_factory=list)

    def __post_init__(self):
        self.collector_url = self.collector_url.rstrip("/")

    def path(self, name):
        """Path of a file inside the data dir."""
        return Path(self.data_dir) / name

    def endpoint(self, path):
        """Absolute collector URL for an API path (leading slash optional)."""
        return f"{self.collector_url}/{path.lstrip('/')}"

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            log.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self):
        return asdict(self)


def _apply_env(config):
    url = os.environ.get("SITE_AGENT_COLLECTOR_URL")
    if url:
        config.collector_url = url.rstrip("/")
    data_dir = os.environ.get("SITE_AGENT_DATA_DIR")
    if data_dir:
        config.data_dir = data_dir
    return config


def default_config_path():
    data_dir = os.environ.get("SITE_AGENT_DATA_DIR") or str(DEFAULT_DATA_DIR)
    return Path(data_dir) / CONFIG_FILE_NAME


def load_config(path=None):
    """Load config from disk. Falls back to defaults when missing or unreadable."""
    path = Path(path) if path else default_config_path()
    data = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Config at %s unreadable (%s), using defaults", path, e)
            data = {}
    return _apply_env(AgentConfig.from_dict(data))


def save_config(config, path=None):
    """Save config to disk."""
    path = Path(path) if path else config.path(CONFIG_FILE_NAME)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    log.info("Config saved to %s", path)
