"""
Request lifecycle controller.

This is the one place that knows the fuel request state machine:

    Pending --decide(Approved)--> Approved
    Pending --decide(Rejected)--> Rejected

Approved and Rejected are terminal. Every applied transition is followed by a
fan-out: the controller resolves recipients, dispatches one notification per
recipient and publishes one lifecycle event per recipient on the event bus.

Design decisions:
- The legality check lives here, not in the store; the store only offers
  an atomic compare-and-set that returns the prior status
- Nothing is dispatched unless the store write committed
- Fan-out runs on a bounded thread pool and the call returns after every
  recipient's durable write and push attempt, so results are deterministic
- A failed notification write after a committed transition is logged and
  reported in the result, not raised; the transition itself stands
"""

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from lifecycle.directory import RecipientDirectory
from lifecycle.dispatcher import NotificationDispatcher
from lifecycle.event_bus import Event, EventBus
from lifecycle.events import request_decided, request_submitted
from lifecycle.templates import NotificationType, push_metadata, render_notification
from shared.errors import InvalidTransitionError, NotFoundError, ValidationError
from shared.models import (
    DispatchOutcome,
    PurchaseFacts,
    ReceiptInfo,
    RequestStatus,
    User,
    UserRole,
)
from shared.record_store import InMemoryRecordStore

logger = logging.getLogger("lifecycle")

DEFAULT_MAX_WORKERS = 4


@dataclass
class TransitionResult:
    """What a submit() or decide() call did."""
    request_id: int
    status: RequestStatus
    outcomes: list[DispatchOutcome] = field(default_factory=list)

    @property
    def recipients(self) -> list[int]:
        return [o.recipient_id for o in self.outcomes]

    @property
    def unrecorded(self) -> list[DispatchOutcome]:
        """Recipients whose in-app notification could not be written."""
        return [o for o in self.outcomes if not o.recorded]

    @property
    def fully_recorded(self) -> bool:
        return not self.unrecorded


class RequestLifecycleController:
    """
    Applies submissions and manager decisions, then notifies.

    Example:
        controller = RequestLifecycleController(store, dispatcher, directory)
        result = controller.submit(7, {"liters": 10, "rate": 100, "total": 1000})
        controller.decide(result.request_id, "Approved")
    """

    def __init__(
        self,
        store: InMemoryRecordStore,
        dispatcher: NotificationDispatcher,
        directory: RecipientDirectory,
        event_bus: Optional[EventBus] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """
        Args:
            store: Record store holding requests, users and notifications
            dispatcher: Sends each recipient's notification
            directory: Resolves recipients
            event_bus: Receives lifecycle events (a private bus if omitted)
            max_workers: Upper bound on parallel dispatches per transition
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.store = store
        self.dispatcher = dispatcher
        self.directory = directory
        self.event_bus = event_bus or EventBus()
        self.max_workers = max_workers

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(
        self,
        driver_id: int,
        facts: Union[PurchaseFacts, Mapping],
        receipt: Union[ReceiptInfo, Mapping, None] = None,
    ) -> TransitionResult:
        """
        Create a Pending request and notify every manager.

        Raises:
            ValidationError: Missing driver id, missing or negative amounts
            NotFoundError: driver_id is not a known user
            StorageError: The request could not be written; nobody is notified
        """
        if driver_id is None:
            raise ValidationError("driver_id is required")
        facts = self._parse_facts(facts)
        receipt = self._parse_receipt(receipt)

        if self.store.get_user(driver_id) is None:
            raise NotFoundError(f"User not found: {driver_id}")

        request = self.store.create(driver_id, facts, receipt)
        logger.info(f"Request {request.id} submitted by driver {driver_id}")

        managers = self.directory.resolve_for_role(UserRole.MANAGER)
        title, body = render_notification(NotificationType.REQUEST_SUBMITTED)

        outcomes = self._fan_out(
            managers,
            title,
            body,
            push_metadata(request.id),
            lambda user, outcome: request_submitted(
                request_id=request.id,
                driver_id=driver_id,
                recipient_id=user.id,
                outcome=outcome,
            ),
        )
        result = TransitionResult(request.id, RequestStatus.PENDING, outcomes)
        self._log_fan_out(result)
        return result

    # =========================================================================
    # Decision
    # =========================================================================

    def decide(self, request_id: int, decision: Union[RequestStatus, str]) -> TransitionResult:
        """
        Approve or reject a Pending request and notify its driver.

        Raises:
            ValidationError: decision is not Approved or Rejected
            NotFoundError: request_id is unknown
            InvalidTransitionError: the request is no longer Pending
            StorageError: The status could not be written
        """
        status = self._parse_decision(decision)

        previous = self.store.update_status(request_id, status, expected=RequestStatus.PENDING)
        if previous != RequestStatus.PENDING:
            logger.warning(
                f"Rejected decision {status.value} on request {request_id}: "
                f"already {previous.value} (possible double submission)"
            )
            raise InvalidTransitionError(request_id, previous.value, status.value)

        logger.info(f"Request {request_id}: {previous.value} -> {status.value}")

        owner = self.directory.resolve_owner(request_id)
        recipients = [owner] if owner is not None else []
        title, body = render_notification(NotificationType.REQUEST_DECIDED, status=status.value)

        outcomes = self._fan_out(
            recipients,
            title,
            body,
            push_metadata(request_id),
            lambda user, outcome: request_decided(
                request_id=request_id,
                driver_id=user.id,
                recipient_id=user.id,
                status=status,
                outcome=outcome,
            ),
        )
        result = TransitionResult(request_id, status, outcomes)
        self._log_fan_out(result)
        return result

    # =========================================================================
    # Fan-out
    # =========================================================================

    def _fan_out(
        self,
        recipients: list[User],
        title: str,
        body: str,
        metadata: dict[str, str],
        make_event: Callable[[User, DispatchOutcome], Event],
    ) -> list[DispatchOutcome]:
        """Notify every recipient once and publish one event each."""
        if not recipients:
            return []

        def deliver(user: User) -> DispatchOutcome:
            outcome = self.dispatcher.notify(user, title, body, metadata)
            self.event_bus.publish(make_event(user, outcome))
            return outcome

        if len(recipients) == 1:
            return [deliver(recipients[0])]

        workers = min(self.max_workers, len(recipients))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dispatch") as pool:
            return list(pool.map(deliver, recipients))

    def _log_fan_out(self, result: TransitionResult) -> None:
        if not result.outcomes:
            logger.info(f"Request {result.request_id}: no recipients to notify")
            return
        if result.unrecorded:
            missing = [o.recipient_id for o in result.unrecorded]
            logger.error(
                f"Request {result.request_id}: {len(missing)} of {len(result.outcomes)} "
                f"notifications not recorded (users {missing})"
            )
        else:
            logger.info(f"Request {result.request_id}: notified {len(result.outcomes)} recipient(s)")

    # =========================================================================
    # Input parsing
    # =========================================================================

    @staticmethod
    def _parse_facts(facts: Union[PurchaseFacts, Mapping, None]) -> PurchaseFacts:
        if isinstance(facts, PurchaseFacts):
            return facts
        if not isinstance(facts, Mapping):
            raise ValidationError("Purchase details are required")
        try:
            return PurchaseFacts.model_validate(dict(facts))
        except PydanticValidationError as e:
            fields = ", ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"Invalid purchase details ({fields})") from e

    @staticmethod
    def _parse_receipt(receipt: Union[ReceiptInfo, Mapping, None]) -> Optional[ReceiptInfo]:
        if receipt is None or isinstance(receipt, ReceiptInfo):
            return receipt
        try:
            return ReceiptInfo.model_validate(dict(receipt))
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid receipt reference: {e}") from e

    @staticmethod
    def _parse_decision(decision: Union[RequestStatus, str, None]) -> RequestStatus:
        if isinstance(decision, RequestStatus):
            status = decision
        else:
            by_name = {s.value.lower(): s for s in RequestStatus}
            status = by_name.get(str(decision or "").strip().lower())
            if status is None:
                raise ValidationError(f"Unknown decision: {decision!r}")
        if not status.is_terminal:
            raise ValidationError("Decision must be Approved or Rejected")
        return status
