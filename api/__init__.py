"""API module for the Checkout backend."""

from .checkout_api import create_app, CheckoutAPI

__all__ = ['create_app', 'CheckoutAPI']
