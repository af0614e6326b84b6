"""
Site snapshot sent with every handshake and event report, plus the
installed-package inventory sent with the handshake.
"""

import os
import sys
import getpass
import platform
import socket
from dataclasses import dataclass, asdict
from importlib import metadata

from .constants import AGENT_VERSION


@dataclass(frozen=True)
class CoreData:
    brand: str
    data: str
    email: str
    hostname: str
    origin: str
    python: str
    platform: str
    plugin: str
    url: str
    username: str
    server_path: str

    def as_dict(self):
        return asdict(self)


def _username():
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


class SiteDataProvider:
    """Builds a fresh CoreData snapshot from config + the running host."""

    def __init__(self, config):
        self.config = config

    def snapshot(self) -> CoreData:
        return CoreData(
            brand=self.config.brand.strip().lower().replace(" ", "-"),
            data=AGENT_VERSION,
            email=self.config.admin_email,
            hostname=socket.gethostname(),
            origin=self.config.origin,
            python=platform.python_version(),
            platform=f"{platform.system()} {platform.release()}",
            plugin=self.config.plugin_version,
            url=self.config.site_url,
            username=_username(),
            server_path=os.path.dirname(os.path.abspath(sys.argv[0])) if sys.argv and sys.argv[0] else "",
        )

    def collect(self) -> dict:
        return self.snapshot().as_dict()


class InstalledPackages:
    """Installed Python distributions, optionally limited to name prefixes."""

    def __init__(self, prefixes=None):
        self.prefixes = tuple(p.lower() for p in (prefixes or ()))

    def collect(self) -> list:
        found = {}
        for dist in metadata.distributions():
            name = dist.metadata["Name"]
            if not name:
                continue
            slug = name.lower().replace("_", "-")
            if self.prefixes and not slug.startswith(self.prefixes):
                continue
            found[slug] = {
                "slug": slug,
                "version": dist.version,
                "title": dist.metadata.get("Summary") or name,
            }
        return [found[slug] for slug in sorted(found)]
