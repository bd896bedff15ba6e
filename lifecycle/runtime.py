"""
Process wiring for the lifecycle core.

Builds the record store, push transport, event bus and the components that
use them from Settings. start() connects the store and opens the transport;
stop() closes both. The API lifespan and the CLI demo own one Runtime each;
nothing is looked up from module globals.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from lifecycle.controller import RequestLifecycleController
from lifecycle.directory import RecipientDirectory
from lifecycle.dispatcher import NotificationDispatcher
from lifecycle.event_bus import EventBus
from lifecycle.finance import FinanceReports
from shared.config import Settings
from shared.push import LoggingPushTransport, PushTransport
from shared.record_store import InMemoryRecordStore, create_record_store

logger = logging.getLogger("lifecycle")


@dataclass
class Runtime:
    """Everything a request handler needs, wired together."""
    store: InMemoryRecordStore
    push: PushTransport
    event_bus: EventBus = field(default_factory=EventBus)
    receipt_base_url: str = "/uploads"
    max_workers: int = 4

    def __post_init__(self):
        self.directory = RecipientDirectory(self.store)
        self.dispatcher = NotificationDispatcher(self.store, self.push)
        self.controller = RequestLifecycleController(
            store=self.store,
            dispatcher=self.dispatcher,
            directory=self.directory,
            event_bus=self.event_bus,
            max_workers=self.max_workers,
        )
        self.finance = FinanceReports(self.store, self.receipt_base_url)
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self.store.connect()
        self.push.open()
        self._started = True
        logger.info("Runtime started")

    def stop(self) -> None:
        if not self._started:
            return
        self.push.close()
        self.store.close()
        self._started = False
        logger.info("Runtime stopped")


def build_runtime(settings: Settings, push: Optional[PushTransport] = None) -> Runtime:
    """
    Build (but do not start) a Runtime from settings.

    Raises:
        StorageError: If settings.database_url names an unsupported store
    """
    store = create_record_store(settings.database_url, users_file=settings.users_file)
    return Runtime(
        store=store,
        push=push or LoggingPushTransport(credential=settings.push_credential),
        receipt_base_url=settings.receipt_base_url,
        max_workers=settings.dispatch_max_workers,
    )
