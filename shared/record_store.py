"""
In-memory record store for fuel requests, receipts, notifications and users.

This module provides the transactional record store the lifecycle core depends
on. A relational backend would offer the same contract with row locks; here a
single re-entrant lock makes every operation atomic per record.

Design decisions:
- Every mutation happens under one lock, so no caller sees a torn record
- update_status() returns the prior status and supports compare-and-set,
  which lets the controller detect a lost race without a second read
- The store knows nothing about legal transitions
- Records are returned as model copies; callers never hold live references
- Users can be seeded from a JSON fixture file on the first connect()
"""

import json
import logging
import threading
from datetime import datetime
from itertools import count
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlparse

from shared.errors import NotFoundError, StorageError, ValidationError
from shared.models import (
    FuelRequest,
    Notification,
    PurchaseFacts,
    Receipt,
    ReceiptInfo,
    RequestStatus,
    User,
    UserRole,
)

logger = logging.getLogger("record_store")

SUPPORTED_SCHEMES = {"memory"}


class InMemoryRecordStore:
    """
    Record store backed by dictionaries guarded by a lock.

    Example:
        store = InMemoryRecordStore()
        store.connect()
        store.add_user(User(id=1, username="dana", role=UserRole.DRIVER))
        request = store.create(1, PurchaseFacts(liters=10, rate=100, total=1000))
        previous = store.update_status(request.id, RequestStatus.APPROVED,
                                       expected=RequestStatus.PENDING)
    """

    def __init__(self, users_file: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            users_file: Optional JSON fixture with a list of user objects,
                        loaded when the store connects.
        """
        self.users_file = Path(users_file) if users_file else None

        self._lock = threading.RLock()
        self._connected = False
        self._users_loaded = False

        self._requests: dict[int, FuelRequest] = {}
        self._receipts: dict[int, Receipt] = {}  # keyed by request_id
        self._notifications: dict[int, Notification] = {}
        self._users: dict[int, User] = {}

        self._request_ids = count(1)
        self._notification_ids = count(1)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def connect(self) -> None:
        """
        Open the store.

        The user fixture, if any, is loaded on the first connect only; a
        reconnect keeps users and push tokens saved since then.
        """
        with self._lock:
            if self._connected:
                return
            if self.users_file is not None and not self._users_loaded:
                for user in self._load_users(self.users_file):
                    self._users[user.id] = user
                self._users_loaded = True
                logger.info(f"Loaded {len(self._users)} users from {self.users_file}")
            self._connected = True
        logger.info("Record store connected")

    def close(self) -> None:
        """Close the store. Further calls raise StorageError."""
        with self._lock:
            self._connected = False
        logger.info("Record store closed")

    @property
    def connected(self) -> bool:
        return self._connected

    def _load_users(self, path: Path) -> list[User]:
        if not path.exists():
            raise StorageError(f"Users file not found: {path}")
        with open(path, "r") as f:
            data = json.load(f)
        return [User(**u) for u in data]

    def _require_connection(self) -> None:
        if not self._connected:
            raise StorageError("Record store is not connected")

    # =========================================================================
    # Fuel Requests
    # =========================================================================

    def create(
        self,
        driver_id: int,
        facts: PurchaseFacts,
        receipt: Optional[ReceiptInfo] = None,
    ) -> FuelRequest:
        """
        Insert a new request with Status=Pending and return it.

        A receipt given here is stored in the same write: either both
        records exist afterwards or neither does.
        """
        with self._lock:
            self._require_connection()
            request = FuelRequest.from_facts(next(self._request_ids), driver_id, facts)
            stored = self._build_receipt(request, receipt) if receipt is not None else None
            self._requests[request.id] = request
            if stored is not None:
                self._receipts[request.id] = stored
            return request.model_copy()

    def attach_receipt(self, request_id: int, receipt: ReceiptInfo) -> Receipt:
        """
        Link a receipt file to an existing request.

        Raises:
            NotFoundError: If the request does not exist
            ValidationError: If the request already has a receipt
        """
        with self._lock:
            self._require_connection()
            request = self._requests.get(request_id)
            if request is None:
                raise NotFoundError(f"Fuel request not found: {request_id}")
            if request_id in self._receipts:
                raise ValidationError(f"Request {request_id} already has a receipt")
            stored = self._build_receipt(request, receipt)
            self._receipts[request_id] = stored
            return stored.model_copy()

    @staticmethod
    def _build_receipt(request: FuelRequest, receipt: ReceiptInfo) -> Receipt:
        return Receipt(
            request_id=request.id,
            driver_id=request.driver_id,
            file_path=receipt.file_path,
            file_type=receipt.file_type,
        )

    def update_status(
        self,
        request_id: int,
        new_status: RequestStatus,
        expected: Optional[RequestStatus] = None,
    ) -> RequestStatus:
        """
        Set a request's status and return the status it had before.

        When ``expected`` is given the write only happens if the current
        status equals it; the prior status is returned either way, so the
        caller can tell whether its write was applied.

        Raises:
            NotFoundError: If the request does not exist
        """
        with self._lock:
            self._require_connection()
            request = self._requests.get(request_id)
            if request is None:
                raise NotFoundError(f"Fuel request not found: {request_id}")

            previous = request.status
            if expected is not None and previous != expected:
                return previous

            self._requests[request_id] = request.model_copy(
                update={"status": new_status, "updated_at": datetime.utcnow()}
            )
            return previous

    def get(self, request_id: int) -> Optional[FuelRequest]:
        """Get a request by ID."""
        with self._lock:
            self._require_connection()
            request = self._requests.get(request_id)
            return request.model_copy() if request else None

    def get_receipt(self, request_id: int) -> Optional[Receipt]:
        """Get the receipt linked to a request, if any."""
        with self._lock:
            self._require_connection()
            receipt = self._receipts.get(request_id)
            return receipt.model_copy() if receipt else None

    def list_by_owner(self, driver_id: int) -> list[FuelRequest]:
        """All requests submitted by one driver, oldest first."""
        with self._lock:
            self._require_connection()
            return [r.model_copy() for r in self._requests.values() if r.driver_id == driver_id]

    def list_by_status(self, statuses: Iterable[RequestStatus]) -> list[FuelRequest]:
        """All requests whose status is in ``statuses``, oldest first."""
        wanted = {RequestStatus(s) for s in statuses}
        with self._lock:
            self._require_connection()
            return [r.model_copy() for r in self._requests.values() if r.status in wanted]

    def list_all(self) -> list[FuelRequest]:
        """Every request, oldest first."""
        with self._lock:
            self._require_connection()
            return [r.model_copy() for r in self._requests.values()]

    # =========================================================================
    # Notifications
    # =========================================================================

    def add_notification(
        self,
        user_id: int,
        title: str,
        message: str,
        data: Optional[dict[str, str]] = None,
    ) -> Notification:
        """Durably record an unread notification for a user."""
        with self._lock:
            self._require_connection()
            notification = Notification(
                id=next(self._notification_ids),
                user_id=user_id,
                title=title,
                message=message,
                data=data or {},
            )
            self._notifications[notification.id] = notification
            return notification.model_copy()

    def list_notifications(self, user_id: Optional[int] = None) -> list[Notification]:
        """Notifications for one user (or all), newest first."""
        with self._lock:
            self._require_connection()
            found = [
                n for n in self._notifications.values()
                if user_id is None or n.user_id == user_id
            ]
        return sorted(found, key=lambda n: n.id, reverse=True)

    def count_notifications(self) -> int:
        with self._lock:
            self._require_connection()
            return len(self._notifications)

    # =========================================================================
    # Users
    # =========================================================================

    def add_user(self, user: User) -> User:
        """Insert or replace a user account."""
        with self._lock:
            self._require_connection()
            self._users[user.id] = user
            return user.model_copy()

    def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by ID."""
        with self._lock:
            self._require_connection()
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def list_users_by_role(self, role: UserRole) -> list[User]:
        """All users holding ``role``."""
        with self._lock:
            self._require_connection()
            return [u.model_copy() for u in self._users.values() if u.role == role]

    def save_push_token(self, user_id: int, token: str) -> User:
        """
        Store a user's push token.

        Raises:
            NotFoundError: If the user does not exist
        """
        with self._lock:
            self._require_connection()
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError(f"User not found: {user_id}")
            updated = user.model_copy(update={"push_token": token})
            self._users[user_id] = updated
            return updated.model_copy()


def create_record_store(database_url: str, users_file: Optional[Path] = None) -> InMemoryRecordStore:
    """
    Build a record store for a connection string.

    Only ``memory://`` is served by this package; any other scheme means a
    backend that is not installed.
    """
    scheme = urlparse(database_url).scheme
    if scheme not in SUPPORTED_SCHEMES:
        raise StorageError(f"Unsupported record store: {database_url}")
    return InMemoryRecordStore(users_file=users_file)
