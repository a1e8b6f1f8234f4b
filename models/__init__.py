"""Data models for the Checkout backend."""

from .payment import (
    Amount,
    OutcomePage,
    PaymentOutcome,
    PaymentSessionRequest,
    RedirectLink,
    ResultCode,
)
from .notification import (
    DispatchState,
    NotificationBatch,
    ValidationError,
    WebhookVerdict,
)

__all__ = [
    'Amount',
    'OutcomePage',
    'PaymentOutcome',
    'PaymentSessionRequest',
    'RedirectLink',
    'ResultCode',
    'DispatchState',
    'NotificationBatch',
    'ValidationError',
    'WebhookVerdict',
]
