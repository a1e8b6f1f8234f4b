"""Services module for the Checkout backend."""

from .gateway_client import GatewayClient, GatewayError
from .webhook_dispatcher import WebhookDispatcher

__all__ = [
    'GatewayClient',
    'GatewayError',
    'WebhookDispatcher'
]
