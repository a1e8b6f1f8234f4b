"""
Webhook notification models.

Represents the notification batches the gateway posts to the
webhook endpoint and the verdict reached for each batch.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ValidationError(ValueError):
    """Raised when a webhook body is not a notification batch."""


class DispatchState(str, Enum):
    """States of a batch while it is being verified."""
    PROCESSING = "processing"
    ALL_ACCEPTED = "all_accepted"
    REJECTED = "rejected"


@dataclass
class NotificationBatch:
    """
    Ordered notification items from one webhook call.

    Each entry is the raw ``NotificationRequestItem`` mapping, or
    whatever the item held if it was not shaped like one.
    """

    notifications: List[Any]
    live: Optional[str] = None

    @classmethod
    def from_body(cls, body: Any) -> 'NotificationBatch':
        """
        Create a batch from a parsed webhook body.

        Args:
            body: Parsed JSON request body

        Returns:
            NotificationBatch instance

        Raises:
            ValidationError: If the body has no list of notification items
        """
        if not isinstance(body, dict):
            raise ValidationError("Notification body must be a JSON object")

        items = body.get('notificationItems')
        if not isinstance(items, list):
            raise ValidationError("notificationItems must be a list")

        notifications = []
        for item in items:
            if isinstance(item, dict):
                notifications.append(item.get('NotificationRequestItem'))
            else:
                notifications.append(item)

        return cls(notifications=notifications, live=body.get('live'))

    def __len__(self) -> int:
        return len(self.notifications)


@dataclass
class WebhookVerdict:
    """Outcome of verifying a notification batch."""

    state: DispatchState = DispatchState.PROCESSING
    accepted: List[Tuple[Optional[str], Optional[str]]] = field(default_factory=list)
    rejected_index: Optional[int] = None
    rejected_notification: Any = None

    @property
    def is_accepted(self) -> bool:
        return self.state == DispatchState.ALL_ACCEPTED

    def accept(self, notification: Dict[str, Any]) -> None:
        """Record a verified notification."""
        self.accepted.append(
            (notification.get('merchantReference'), notification.get('eventCode'))
        )

    def reject(self, index: int, notification: Any) -> None:
        """Move to the rejected state for the given item."""
        self.state = DispatchState.REJECTED
        self.rejected_index = index
        self.rejected_notification = notification

    def finish(self) -> None:
        """Mark the batch as fully accepted."""
        if self.state == DispatchState.PROCESSING:
            self.state = DispatchState.ALL_ACCEPTED
