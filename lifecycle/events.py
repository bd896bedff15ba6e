"""
Lifecycle event definitions.

Events are named in past tense and carry everything a subscriber needs, so
nobody has to query the store back. One event is published per resolved
recipient of a transition.
"""

from typing import Optional

from lifecycle.event_bus import Event
from shared.models import DispatchOutcome, RequestStatus

SOURCE = "fuel-request-lifecycle"


class EventTypes:
    """Constants for event type names."""
    REQUEST_SUBMITTED = "RequestSubmitted"
    REQUEST_DECIDED = "RequestDecided"


def _dispatch_fields(outcome: Optional[DispatchOutcome]) -> dict:
    if outcome is None:
        return {}
    return {
        "notification_recorded": outcome.recorded,
        "push_status": outcome.push.value,
    }


def request_submitted(
    request_id: int,
    driver_id: int,
    recipient_id: int,
    outcome: Optional[DispatchOutcome] = None,
    source: str = SOURCE,
) -> Event:
    """
    Create a RequestSubmitted event.

    Published once per manager notified about a new request.
    """
    return Event(
        event_type=EventTypes.REQUEST_SUBMITTED,
        source=source,
        payload={
            "request_id": request_id,
            "driver_id": driver_id,
            "recipient_id": recipient_id,
            "status": RequestStatus.PENDING.value,
            **_dispatch_fields(outcome),
        },
    )


def request_decided(
    request_id: int,
    driver_id: int,
    recipient_id: int,
    status: RequestStatus,
    outcome: Optional[DispatchOutcome] = None,
    source: str = SOURCE,
) -> Event:
    """
    Create a RequestDecided event.

    Published when a manager approves or rejects a request; the recipient is
    always the submitting driver.
    """
    return Event(
        event_type=EventTypes.REQUEST_DECIDED,
        source=source,
        payload={
            "request_id": request_id,
            "driver_id": driver_id,
            "recipient_id": recipient_id,
            "status": RequestStatus(status).value,
            **_dispatch_fields(outcome),
        },
    )
