"""
Shared pytest fixtures for the fuel request workflow tests.

These fixtures provide a connected store seeded with a small cast of users
and fresh collaborators for each test.
"""

import pytest
from pathlib import Path

from lifecycle.controller import RequestLifecycleController
from lifecycle.directory import RecipientDirectory
from lifecycle.dispatcher import NotificationDispatcher
from lifecycle.event_bus import EventBus
from shared.models import User, UserRole
from shared.push import LoggingPushTransport
from shared.record_store import InMemoryRecordStore


@pytest.fixture
def users_file() -> Path:
    """Path to the sample users fixture."""
    return Path(__file__).parent.parent / "data" / "users.json"


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def driver() -> User:
    """Driver with a push token."""
    return User(id=7, username="dana", email="dana@example.com",
                role=UserRole.DRIVER, push_token="tokDriver")


@pytest.fixture
def tokenless_driver() -> User:
    """Driver who never registered a device."""
    return User(id=8, username="omar", role=UserRole.DRIVER)


@pytest.fixture
def manager_with_token() -> User:
    return User(id=100, username="alex", role=UserRole.MANAGER, push_token="tokA")


@pytest.fixture
def manager_without_token() -> User:
    return User(id=101, username="bea", role=UserRole.MANAGER, push_token=None)


@pytest.fixture
def finance_user() -> User:
    return User(id=200, username="fin", role=UserRole.FINANCE, push_token="tokF")


# =============================================================================
# Infrastructure Fixtures
# =============================================================================

@pytest.fixture
def empty_store() -> InMemoryRecordStore:
    """Connected store with no users."""
    store = InMemoryRecordStore()
    store.connect()
    yield store
    store.close()


@pytest.fixture
def store(empty_store, driver, tokenless_driver, finance_user) -> InMemoryRecordStore:
    """Connected store with drivers and finance but no managers."""
    for user in (driver, tokenless_driver, finance_user):
        empty_store.add_user(user)
    return empty_store


@pytest.fixture
def store_with_managers(store, manager_with_token, manager_without_token) -> InMemoryRecordStore:
    """Store with two managers: one with token "tokA", one without."""
    store.add_user(manager_with_token)
    store.add_user(manager_without_token)
    return store


@pytest.fixture
def push() -> LoggingPushTransport:
    """Fresh push transport that always succeeds."""
    transport = LoggingPushTransport(fail_rate=0.0)
    transport.open()
    return transport


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


def build_controller(store, push, event_bus=None, max_workers=4) -> RequestLifecycleController:
    """Wire a controller over the given store and transport."""
    return RequestLifecycleController(
        store=store,
        dispatcher=NotificationDispatcher(store, push),
        directory=RecipientDirectory(store),
        event_bus=event_bus,
        max_workers=max_workers,
    )


@pytest.fixture
def make_controller():
    """Factory for controllers over a custom store or transport."""
    return build_controller


@pytest.fixture
def controller(store_with_managers, push, event_bus) -> RequestLifecycleController:
    """Controller over a store with two managers."""
    return build_controller(store_with_managers, push, event_bus)


@pytest.fixture
def valid_facts() -> dict:
    return {
        "vehicle_name": "Tata Ace",
        "vehicle_number": "KA-01-1234",
        "odometer": 45210,
        "liters": 10,
        "rate": 100,
        "total": 1000,
        "station": "Shell MG Road",
        "notes": "Full tank",
    }
