"""
SiteAgent — wires config, stores, connection, dispatcher and sender together.
"""

from .config import (
    log,
    OPTIONS_FILE_NAME,
    TRANSIENTS_FILE_NAME,
    OUTBOX_FILE_NAME,
)
from .connection import ConnectionManager
from .core_data import SiteDataProvider, InstalledPackages
from .delivery import EventSender
from .dispatcher import RequestDispatcher
from .http_client import create_session
from .outbox import Outbox
from .outcomes import Rejected, is_error
from .storage import JsonFileStore, JsonTransientStore


class SiteAgent:
    def __init__(self, config, options=None, transients=None, session=None):
        self.config = config
        self.options = options or JsonFileStore(config.path(OPTIONS_FILE_NAME))
        self.transients = transients or JsonTransientStore(config.path(TRANSIENTS_FILE_NAME))
        self.session = session or create_session()
        self.core_data = SiteDataProvider(config)

        self.connection = ConnectionManager(
            config,
            self.options,
            self.transients,
            self.core_data,
            inventory=InstalledPackages(config.package_prefixes),
            session=self.session,
        )
        self.dispatcher = RequestDispatcher(config, self.connection, session=self.session)
        self.sender = EventSender(self.dispatcher, self.core_data)
        self.outbox = Outbox(config.path(OUTBOX_FILE_NAME))

    def ensure_connected(self):
        """Connect if there's no credential yet. Throttled attempts return False quietly."""
        if self.connection.is_connected():
            return True
        return self.connection.connect()

    def handle_result(self, result):
        """Clear the credential when the collector no longer recognises it (401)."""
        if isinstance(result, Rejected) and result.code == 401:
            self.connection.forget_token()
        return result

    def send(self, event, queue_on_failure=False):
        result = self.handle_result(self.sender.send_event(event))
        if is_error(result) and queue_on_failure:
            self.outbox.push([event])
        return result

    def flush(self):
        if not self.outbox.has_pending():
            return 0, 0
        log.info("Flushing outbox ...")
        return self.outbox.flush(self)

    def send_batch(self, events):
        """Batch send used by the outbox; applies the 401 rule too."""
        return self.handle_result(self.sender.send_batch(events))
