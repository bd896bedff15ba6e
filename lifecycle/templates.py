"""
Notification message templates.

The same title and body go into the in-app record and the push payload.
Templates use str.format placeholders.
"""

from dataclasses import dataclass
from enum import Enum


class NotificationType(str, Enum):
    """Lifecycle transitions that notify someone."""
    REQUEST_SUBMITTED = "request_submitted"
    REQUEST_DECIDED = "request_decided"


@dataclass(frozen=True)
class NotificationTemplate:
    notification_type: NotificationType
    title: str
    body: str

    def render(self, **kwargs) -> tuple[str, str]:
        """
        Render the template with provided variables.

        Returns:
            Tuple of (title, body)
        """
        return self.title.format(**kwargs), self.body.format(**kwargs)


TEMPLATES: dict[NotificationType, NotificationTemplate] = {
    NotificationType.REQUEST_SUBMITTED: NotificationTemplate(
        notification_type=NotificationType.REQUEST_SUBMITTED,
        title="New Fuel Request",
        body="A driver submitted a fuel request",
    ),
    NotificationType.REQUEST_DECIDED: NotificationTemplate(
        notification_type=NotificationType.REQUEST_DECIDED,
        title="Request {status}",
        body="Your fuel request has been {status}.",
    ),
}


def render_notification(notification_type: NotificationType, **kwargs) -> tuple[str, str]:
    """
    Render a notification for a lifecycle transition.

    Raises:
        KeyError: If a placeholder is missing from kwargs
    """
    return TEMPLATES[notification_type].render(**kwargs)


def push_metadata(request_id: int) -> dict[str, str]:
    """Data map sent with every push; values must be strings."""
    return {"requestId": str(request_id)}
