"""
Notification dispatcher.

Delivers one notification to one recipient in two independent steps:

1. Durable write of the in-app Notification record. Always attempted, even
   when the recipient has no push token; this record is the authoritative
   notice.
2. One push attempt if the recipient has a token. Best effort: failures are
   logged and reported in the outcome, never raised and never retried.

notify() never raises. Callers inspect the returned DispatchOutcome:
``recorded`` is False only when the durable write failed.
"""

import logging
from typing import Optional

from shared.errors import StorageError
from shared.models import DispatchOutcome, PushStatus, User
from shared.push import PushTransport
from shared.record_store import InMemoryRecordStore

logger = logging.getLogger("dispatcher")


class NotificationDispatcher:
    """Writes the in-app record and attempts the push for one recipient."""

    def __init__(self, store: InMemoryRecordStore, push: PushTransport):
        self.store = store
        self.push = push

    def notify(
        self,
        recipient: User,
        title: str,
        body: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> DispatchOutcome:
        metadata = metadata or {}
        errors = []

        notification_id = None
        try:
            notification = self.store.add_notification(recipient.id, title, body, metadata)
            notification_id = notification.id
        except StorageError as e:
            logger.error(f"Could not record notification for user {recipient.id}: {e}")
            errors.append(f"record: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error recording notification for user {recipient.id}")
            errors.append(f"record: {type(e).__name__}: {e}")

        push_status = self._attempt_push(recipient, title, body, metadata)
        if push_status == PushStatus.FAILED:
            errors.append("push: delivery attempt failed")

        outcome = DispatchOutcome(
            recipient_id=recipient.id,
            recorded=notification_id is not None,
            notification_id=notification_id,
            push=push_status,
            error="; ".join(errors) or None,
        )
        if outcome.recorded and push_status == PushStatus.FAILED:
            logger.warning(f"Dispatch degraded for user {recipient.id}: push failed, record kept")
        return outcome

    def _attempt_push(
        self,
        recipient: User,
        title: str,
        body: str,
        metadata: dict[str, str],
    ) -> PushStatus:
        if not recipient.push_token:
            logger.debug(f"User {recipient.id} has no push token, skipping push")
            return PushStatus.SKIPPED

        try:
            accepted = self.push.send(recipient.push_token, title, body, metadata)
        except Exception as e:
            logger.warning(f"Push to user {recipient.id} raised: {e}")
            return PushStatus.FAILED

        if not accepted:
            logger.warning(f"Push to user {recipient.id} was not accepted")
            return PushStatus.FAILED
        return PushStatus.SENT
