"""
Webhook Dispatcher.

Verifies every notification in a batch and decides whether the
batch as a whole is accepted.
"""

import logging
from typing import Any, Callable

from models.notification import NotificationBatch, WebhookVerdict
from services import webhook_verifier

logger = logging.getLogger(__name__)

Verifier = Callable[[Any, str], bool]


class WebhookDispatcher:
    """
    Fail-fast verification of notification batches.

    Items are checked in order. The first one that fails moves the
    verdict to REJECTED and no later item is looked at. The caller
    turns the verdict into exactly one HTTP response.
    """

    def __init__(self, hmac_key: str, verifier: Verifier = webhook_verifier.verify):
        """
        Initialize the dispatcher.

        Args:
            hmac_key: Hex-encoded key shared with the gateway
            verifier: Signature check, replaceable for tests
        """
        self.hmac_key = hmac_key
        self.verifier = verifier

    def dispatch(self, batch: NotificationBatch) -> WebhookVerdict:
        """
        Verify a notification batch.

        Args:
            batch: Notifications from one webhook call

        Returns:
            WebhookVerdict in the ALL_ACCEPTED or REJECTED state
        """
        verdict = WebhookVerdict()
        logger.info(f"Verifying {len(batch)} notification(s), live={batch.live}")

        for index, notification in enumerate(batch.notifications):
            if not self.verifier(notification, self.hmac_key):
                logger.warning(f"Invalid HMAC signature: {notification}")
                verdict.reject(index, notification)
                return verdict

            verdict.accept(notification)
            logger.info(
                f"merchantReference:{notification.get('merchantReference')} "
                f"eventCode:{notification.get('eventCode')}"
            )

        verdict.finish()
        return verdict
