"""
Payment Gateway Client.

Forwards checkout calls to the payment processor's REST API and
returns the parsed JSON, or raises GatewayError with the upstream
status so handlers can pass it on unchanged.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from config import GatewayConfig
from models.payment import PaymentSessionRequest

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """
    An error response (or transport failure) from the gateway.

    Attributes:
        status: HTTP status to report to our own caller
        message: Human-readable message from the gateway
        error_code: Gateway-specific error code, if any
    """

    def __init__(self, status: int, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.error_code = error_code

    def __str__(self) -> str:
        return f"{self.message} (status={self.status}, error code={self.error_code})"


class GatewayClient:
    """
    Client for the gateway's Checkout API.

    Features:
    - One shared aiohttp session, opened on start and closed on stop
    - API key header attached to every call
    - No retries: callers see the raw failure
    """

    def __init__(self, config: GatewayConfig, base_url: Optional[str] = None):
        """
        Initialize the gateway client.

        Args:
            config: Gateway credentials and environment
            base_url: Override for the Checkout API root (used by tests)
        """
        self.config = config
        self.base_url = (base_url or config.base_url).rstrip('/')
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        """Open the HTTP session."""
        logger.info(f"Starting gateway client for {self.base_url}")
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            headers={
                'X-API-Key': self.config.api_key,
                'Content-Type': 'application/json'
            }
        )

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def list_payment_methods(
        self,
        locale: str,
        country_code: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Get the payment methods available to a shopper.

        Args:
            locale: Shopper locale, e.g. en-US
            country_code: Optional shopper country code

        Returns:
            Gateway's payment methods response
        """
        payload = {
            'merchantAccount': self.config.merchant_account,
            'shopperLocale': locale,
            'channel': 'Web'
        }
        if country_code:
            payload['countryCode'] = country_code
        return await self._post('/paymentMethods', payload)

    async def create_session(self, request: PaymentSessionRequest) -> Dict[str, Any]:
        """
        Create a checkout session.

        Args:
            request: Session request with a freshly generated reference

        Returns:
            Gateway's session response (id, sessionData, ...)
        """
        logger.info(f"Creating session for reference {request.reference}")
        return await self._post('/sessions', request.to_dict())

    async def submit_payment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a payment."""
        logger.info(f"Submitting payment {payload.get('reference')}")
        return await self._post('/payments', payload)

    async def submit_payment_details(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Submit additional details (redirect result, 3DS data) for a payment."""
        return await self._post('/payments/details', payload)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload to the gateway.

        Args:
            path: Endpoint path below the API root
            payload: JSON body

        Returns:
            Parsed JSON response

        Raises:
            GatewayError: On a non-2xx response, a malformed body or a
                transport failure
        """
        if not self._session:
            raise RuntimeError("Gateway client not started")

        url = f"{self.base_url}{path}"

        try:
            async with self._session.post(url, json=payload) as response:
                body = await response.text()
                status = response.status
        except aiohttp.ClientError as e:
            logger.error(f"Network error calling {path}: {e}")
            raise GatewayError(502, f"Payment gateway unreachable: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout calling {path}")
            raise GatewayError(504, "Payment gateway timed out") from e

        if 200 <= status < 300:
            return self._parse_success(path, body)

        error = self._parse_error(status, body)
        logger.error(f"Error: {error.message}, error code: {error.error_code}")
        raise error

    @staticmethod
    def _parse_success(path: str, body: str) -> Dict[str, Any]:
        """
        Decode a 2xx response body.

        Raises:
            GatewayError: If the body is not a JSON object
        """
        if not body:
            return {}

        try:
            data = json.loads(body)
        except ValueError:
            data = None

        if not isinstance(data, dict):
            logger.error(f"Unexpected response body from {path}: {body[:200]}")
            raise GatewayError(502, "Invalid response from payment gateway")

        return data

    @staticmethod
    def _parse_error(status: int, body: str) -> GatewayError:
        """Build a GatewayError from an error response body."""
        try:
            data = json.loads(body)
        except ValueError:
            return GatewayError(status, body)

        if not isinstance(data, dict):
            return GatewayError(status, body)

        return GatewayError(
            status,
            data.get('message') or body,
            data.get('errorCode')
        )
