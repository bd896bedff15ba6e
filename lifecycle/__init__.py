"""
Fuel request lifecycle and notification fan-out.

Components:
- RequestLifecycleController: the Pending -> Approved/Rejected state machine
- RecipientDirectory: who to notify
- NotificationDispatcher: durable record + best-effort push per recipient
- EventBus: lifecycle events for the audit trail
"""

from lifecycle.controller import RequestLifecycleController, TransitionResult
from lifecycle.directory import RecipientDirectory
from lifecycle.dispatcher import NotificationDispatcher
from lifecycle.event_bus import Event, EventBus
from lifecycle.events import EventTypes
from lifecycle.finance import FinanceReports

__all__ = [
    "RequestLifecycleController",
    "TransitionResult",
    "RecipientDirectory",
    "NotificationDispatcher",
    "Event",
    "EventBus",
    "EventTypes",
    "FinanceReports",
]
