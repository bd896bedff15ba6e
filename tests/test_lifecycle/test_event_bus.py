"""
Tests for the lifecycle event bus and event constructors.
"""

import pytest

from lifecycle.event_bus import Event, EventBus
from lifecycle.events import EventTypes, request_decided, request_submitted
from shared.models import DispatchOutcome, PushStatus, RequestStatus


class TestEvent:
    """Tests for Event class."""

    def test_create_event(self):
        event = Event(event_type="TestEvent", source="test", payload={"key": "value"})

        assert event.event_type == "TestEvent"
        assert event.payload == {"key": "value"}
        assert event.event_id is not None
        assert event.timestamp is not None

    def test_event_ids_are_unique(self):
        event1 = Event(event_type="Test", source="test", payload={})
        event2 = Event(event_type="Test", source="test", payload={})

        assert event1.event_id != event2.event_id

    def test_event_str(self):
        event = Event(event_type="RequestDecided", source="lifecycle", payload={})

        assert "RequestDecided" in str(event)
        assert "lifecycle" in str(event)


class TestEventBus:
    """Tests for EventBus pub/sub functionality."""

    @pytest.fixture
    def bus(self):
        return EventBus()

    def test_subscribe_and_publish(self, bus: EventBus):
        received = []
        bus.subscribe("TestEvent", received.append)

        count = bus.publish(Event(event_type="TestEvent", source="test", payload={"data": 1}))

        assert count == 1
        assert received[0].payload["data"] == 1

    def test_wildcard_subscriber_receives_everything(self, bus: EventBus):
        received = []
        bus.subscribe_all(received.append)

        bus.publish(Event(event_type="A", source="test", payload={}))
        bus.publish(Event(event_type="B", source="test", payload={}))

        assert [e.event_type for e in received] == ["A", "B"]

    def test_failing_handler_does_not_stop_others(self, bus: EventBus):
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe("TestEvent", broken)
        bus.subscribe("TestEvent", received.append)

        count = bus.publish(Event(event_type="TestEvent", source="test", payload={}))

        assert count == 2
        assert len(received) == 1

    def test_unsubscribe(self, bus: EventBus):
        received = []
        bus.subscribe("TestEvent", received.append)

        assert bus.unsubscribe("TestEvent", received.append) is True
        assert bus.unsubscribe("TestEvent", received.append) is False
        bus.publish(Event(event_type="TestEvent", source="test", payload={}))

        assert received == []
        assert bus.get_subscriber_count("TestEvent") == 0

    def test_event_log_and_request_trail(self, bus: EventBus):
        bus.publish(request_submitted(request_id=1, driver_id=7, recipient_id=100))
        bus.publish(request_submitted(request_id=2, driver_id=7, recipient_id=100))
        bus.publish(request_decided(request_id=1, driver_id=7, recipient_id=7,
                                    status=RequestStatus.APPROVED))

        assert len(bus.get_event_log()) == 3
        trail = bus.get_events_for_request(1)
        assert [e.event_type for e in trail] == [
            EventTypes.REQUEST_SUBMITTED,
            EventTypes.REQUEST_DECIDED,
        ]

        bus.clear_event_log()
        assert bus.get_event_log() == []


class TestLifecycleEvents:

    def test_submitted_payload(self):
        outcome = DispatchOutcome(recipient_id=100, recorded=True, push=PushStatus.SENT)
        event = request_submitted(request_id=3, driver_id=7, recipient_id=100, outcome=outcome)

        assert event.event_type == EventTypes.REQUEST_SUBMITTED
        assert event.payload == {
            "request_id": 3,
            "driver_id": 7,
            "recipient_id": 100,
            "status": "Pending",
            "notification_recorded": True,
            "push_status": "sent",
        }

    def test_decided_payload_accepts_string_status(self):
        event = request_decided(request_id=3, driver_id=7, recipient_id=7, status="Rejected")

        assert event.payload["status"] == "Rejected"
        assert "push_status" not in event.payload
