"""
Demonstration scripts for the fuel request lifecycle.

These functions run the lifecycle against the sample users in data/users.json
and print what was recorded and pushed.
"""

import logging
from pathlib import Path

from lifecycle.runtime import Runtime
from shared.errors import InvalidTransitionError
from shared.push import LoggingPushTransport
from shared.record_store import InMemoryRecordStore

DEFAULT_USERS_FILE = Path(__file__).parent.parent / "data" / "users.json"

# Driver and manager ids from the sample fixture
DRIVER_ID = 1


def _setup(users_file: Path = DEFAULT_USERS_FILE, fail_tokens: set[str] = frozenset()) -> Runtime:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
        datefmt="%H:%M:%S",
    )
    runtime = Runtime(
        store=InMemoryRecordStore(users_file=users_file),
        push=LoggingPushTransport(fail_tokens=set(fail_tokens)),
    )
    runtime.event_bus.subscribe_all(lambda event: print(f"  audit: {event} {event.payload}"))
    runtime.start()
    return runtime


def _print_notifications(runtime: Runtime) -> None:
    print("\nNotification records:")
    for n in reversed(runtime.store.list_notifications()):
        print(f"  user {n.user_id}: {n.title} - {n.message}")
    print("\nPush attempts:")
    for attempt in runtime.push.attempts:
        print(f"  {attempt}")


def run_approval_demo(users_file: Path = DEFAULT_USERS_FILE):
    """
    Submit a request, approve it, then try to approve it again.

    This shows:
    1. Every manager gets a record; only managers with a token get a push
    2. The approval notifies the driver
    3. A second decision is refused and notifies nobody
    """
    print("\n" + "=" * 70)
    print("DEMO: Submit and approve a fuel request")
    print("=" * 70 + "\n")

    runtime = _setup(users_file)
    try:
        submitted = runtime.controller.submit(
            DRIVER_ID,
            {"vehicle_number": "KA-01-1234", "liters": 40, "rate": 102.5, "total": 4100},
        )
        print(f"\nSubmitted request {submitted.request_id}, notified {submitted.recipients}")

        decided = runtime.controller.decide(submitted.request_id, "Approved")
        print(f"Decided request {decided.request_id}: {decided.status.value}")

        try:
            runtime.controller.decide(submitted.request_id, "Rejected")
        except InvalidTransitionError as e:
            print(f"Second decision refused: {e}")

        _print_notifications(runtime)
    finally:
        runtime.stop()


def run_push_failure_demo(users_file: Path = DEFAULT_USERS_FILE):
    """
    Submit a request while the push provider rejects a manager's token.

    The in-app record is still written and the submission still succeeds.
    """
    print("\n" + "=" * 70)
    print("DEMO: Push failure does not lose the notification")
    print("=" * 70 + "\n")

    runtime = _setup(users_file, fail_tokens={"fcm-token-lee"})
    try:
        result = runtime.controller.submit(DRIVER_ID, {"liters": 10, "rate": 100, "total": 1000})
        for outcome in result.outcomes:
            print(f"  user {outcome.recipient_id}: recorded={outcome.recorded} push={outcome.push.value}")
        _print_notifications(runtime)
    finally:
        runtime.stop()


if __name__ == "__main__":
    run_approval_demo()
    run_push_failure_demo()
