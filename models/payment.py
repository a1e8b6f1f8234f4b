"""
Payment data models.

Represents session requests sent to the gateway and the redirect
descriptors returned to the frontend.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


INTERNAL_RESULT_ROUTE = 'checkout_payment_result'


class ResultCode(str, Enum):
    """Result codes the gateway reports for a payment attempt."""
    AUTHORISED = "Authorised"
    PENDING = "Pending"
    RECEIVED = "Received"
    REFUSED = "Refused"


class OutcomePage(str, Enum):
    """User-facing landing pages after a payment attempt."""
    SUCCESS = "success"
    PENDING = "pending"
    FAILED = "failed"
    ERROR = "error"


def generate_reference() -> str:
    """Generate a unique payment reference."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Amount:
    """Monetary amount in minor units (e.g. cents)."""

    currency: str
    value: int

    def to_dict(self) -> Dict[str, Any]:
        return {'currency': self.currency, 'value': self.value}


@dataclass(frozen=True)
class PaymentSessionRequest:
    """
    Request body for creating a checkout session.

    The reference is generated once per attempt and never changes.
    """

    amount: Amount
    country_code: str
    merchant_account: str
    return_url: str
    reference: str = field(default_factory=generate_reference)

    @classmethod
    def for_order(
        cls,
        amount: Amount,
        country_code: str,
        merchant_account: str,
        public_url: str
    ) -> 'PaymentSessionRequest':
        """
        Build a session request whose return URL points back at the
        shopper redirect handler for this order.

        Args:
            amount: Amount to charge
            country_code: Shopper country code
            merchant_account: Merchant account name at the gateway
            public_url: Externally reachable base URL of this service

        Returns:
            PaymentSessionRequest instance
        """
        reference = generate_reference()
        return cls(
            amount=amount,
            country_code=country_code,
            merchant_account=merchant_account,
            return_url=f"{public_url}/api/handleShopperRedirect?orderRef={reference}",
            reference=reference
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the gateway's JSON shape."""
        return {
            'amount': self.amount.to_dict(),
            'countryCode': self.country_code,
            'merchantAccount': self.merchant_account,
            'reference': self.reference,
            'returnUrl': self.return_url
        }


@dataclass(frozen=True)
class RedirectLink:
    """
    Tells the frontend where to continue the checkout flow.

    Internal links name a frontend route; external links carry a URL.
    """

    type: str
    name: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    href: Optional[str] = None

    @classmethod
    def internal(cls, payment_id: str) -> 'RedirectLink':
        return cls(
            type='internal',
            name=INTERNAL_RESULT_ROUTE,
            params={'paymentId': payment_id}
        )

    @classmethod
    def external(cls, href: Optional[str]) -> 'RedirectLink':
        return cls(type='external', href=href)

    def to_dict(self) -> Dict[str, Any]:
        if self.type == 'external':
            return {'type': self.type, 'href': self.href}
        return {'type': self.type, 'name': self.name, 'params': self.params}


@dataclass(frozen=True)
class PaymentOutcome:
    """Response body for the payments and payment-details endpoints."""

    payment_id: str
    redirect_method: str
    redirect_link: RedirectLink
    redirect_action: Optional[Dict[str, Any]] = None
    redirect_data: Optional[Any] = None

    @classmethod
    def from_gateway_response(
        cls,
        response: Dict[str, Any],
        payment_id: str
    ) -> 'PaymentOutcome':
        """
        Derive the redirect descriptor from a payments response.

        An ``action`` in the response means the shopper must be sent
        to the gateway (3DS, redirect methods); otherwise the frontend
        shows its own result page for this payment.

        Args:
            response: Parsed gateway JSON
            payment_id: Reference generated for this payment

        Returns:
            PaymentOutcome instance
        """
        action = response.get('action')
        if isinstance(action, dict) and action:
            return cls(
                payment_id=payment_id,
                redirect_method=action.get('method', 'GET'),
                redirect_link=RedirectLink.external(action.get('url')),
                redirect_action=action,
                redirect_data=action.get('data')
            )

        return cls(
            payment_id=payment_id,
            redirect_method='GET',
            redirect_link=RedirectLink.internal(payment_id)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'paymentId': self.payment_id,
            'redirectMethod': self.redirect_method,
            'redirectLink': self.redirect_link.to_dict()
        }
        if self.redirect_action is not None:
            data['redirectAction'] = self.redirect_action
            data['redirectData'] = self.redirect_data
        return data
