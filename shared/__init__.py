"""
Shared infrastructure for the fuel request workflow.

This package contains the pieces the lifecycle core depends on:
- Domain models (FuelRequest, Notification, User, ...)
- The error taxonomy
- The record store
- Push transports
- Settings
"""

from shared.models import (
    ActionResult,
    DispatchOutcome,
    FuelRequest,
    Notification,
    PurchaseFacts,
    PushStatus,
    Receipt,
    ReceiptInfo,
    RequestStatus,
    User,
    UserRole,
)
from shared.errors import (
    FuelRequestError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from shared.record_store import InMemoryRecordStore, create_record_store
from shared.push import LoggingPushTransport, PushTransport

__all__ = [
    "ActionResult",
    "DispatchOutcome",
    "FuelRequest",
    "Notification",
    "PurchaseFacts",
    "PushStatus",
    "Receipt",
    "ReceiptInfo",
    "RequestStatus",
    "User",
    "UserRole",
    "FuelRequestError",
    "InvalidTransitionError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "InMemoryRecordStore",
    "create_record_store",
    "LoggingPushTransport",
    "PushTransport",
]
