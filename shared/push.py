"""
Push notification transports.

The lifecycle core only needs "send(token, title, body, data) -> attempted".
The wire protocol to a push provider (FCM, APNs, ...) lives outside this
package; the transport shipped here logs every attempt and records it, which
is what the API runs with by default and what the tests assert against.

Design decisions:
- Transports return True/False for "attempt accepted"; they may also raise
- Attempts are tracked for test assertions
- Failures can be simulated per token or by rate
- No retries here; retry policy belongs to the provider integration
- Sending on a transport that is not open raises PushDeliveryError
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from pydantic import SecretStr

logger = logging.getLogger("push")


class PushTransport(Protocol):
    """Capability the dispatcher uses to attempt a push."""

    def open(self) -> None: ...

    def close(self) -> None: ...

    def send(self, token: str, title: str, body: str, data: dict[str, str]) -> bool: ...


class PushDeliveryError(Exception):
    """Raised by a transport when the provider call fails."""


@dataclass
class PushAttempt:
    """
    Record of one push attempt.

    Captures success/failure and payload for debugging and testing.
    """
    token: str
    title: str
    body: str
    data: dict[str, str]
    success: bool
    timestamp: datetime = field(default_factory=datetime.utcnow)
    error: Optional[str] = None

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        return f"{status} PUSH to {self.token[:8]}: {self.title}"


class LoggingPushTransport:
    """
    Push transport that logs instead of calling a provider.

    Tracks attempts for test assertions and can simulate failures.
    """

    def __init__(
        self,
        credential: Optional[SecretStr] = None,
        fail_rate: float = 0.0,
        fail_tokens: Optional[set[str]] = None,
        raise_on_failure: bool = False,
    ):
        """
        Initialize the transport.

        Args:
            credential: Provider credential (server key); only checked for presence.
            fail_rate: Probability of a simulated failure (0.0 to 1.0).
            fail_tokens: Tokens whose sends always fail.
            raise_on_failure: Raise PushDeliveryError instead of returning False.
        """
        self.credential = credential
        self.fail_rate = fail_rate
        self.fail_tokens = set(fail_tokens or ())
        self.raise_on_failure = raise_on_failure
        self.attempts: list[PushAttempt] = []
        self._lock = threading.Lock()
        self._open = False

    def open(self) -> None:
        if self.credential is None or not self.credential.get_secret_value():
            logger.warning("No push credential configured; pushes will only be logged")
        self._open = True
        logger.info("Push transport opened")

    def close(self) -> None:
        self._open = False
        logger.info("Push transport closed")

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, token: str, title: str, body: str, data: dict[str, str]) -> bool:
        """
        Attempt a push (mock implementation).

        Returns:
            True if the attempt was accepted, False on a simulated failure

        Raises:
            PushDeliveryError: If the transport is not open, or on a simulated
                failure when raise_on_failure is set
        """
        if not self._open:
            raise PushDeliveryError("Push transport is not open")

        failed = token in self.fail_tokens or random.random() < self.fail_rate
        attempt = PushAttempt(
            token=token,
            title=title,
            body=body,
            data=dict(data),
            success=not failed,
            error="Simulated push delivery failure" if failed else None,
        )
        with self._lock:
            self.attempts.append(attempt)

        if failed:
            logger.error(f"[PUSH FAILED] To: {token[:8]}... | Title: {title} | Error: {attempt.error}")
            if self.raise_on_failure:
                raise PushDeliveryError(attempt.error)
            return False

        logger.info(f"[PUSH] To: {token[:8]}... | Title: {title}")
        logger.debug(f"[PUSH BODY] {body} | data={data}")
        return True

    def get_attempt_count(self) -> int:
        """Get the number of push attempts made (for testing)."""
        with self._lock:
            return len(self.attempts)

    def get_successful_sends(self) -> list[PushAttempt]:
        """Get all successful attempts."""
        with self._lock:
            return [a for a in self.attempts if a.success]

    def find_attempt_to(self, token: str) -> Optional[PushAttempt]:
        """Find the first attempt made to a specific token."""
        with self._lock:
            for attempt in self.attempts:
                if attempt.token == token:
                    return attempt
        return None

    def clear_history(self):
        """Clear attempt history (useful between tests)."""
        with self._lock:
            self.attempts.clear()
