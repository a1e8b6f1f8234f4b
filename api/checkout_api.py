"""
Checkout API.

Provides the REST endpoints the checkout frontend talks to, plus the
webhook endpoint the payment gateway posts notifications to.
"""

import logging
import os
from typing import Any, Dict, Optional

from aiohttp import web

from config import Config
from models.notification import NotificationBatch, ValidationError
from models.payment import (
    Amount,
    OutcomePage,
    PaymentOutcome,
    PaymentSessionRequest,
    generate_reference,
)
from services.gateway_client import GatewayClient, GatewayError
from services.redirect_resolver import resolve, result_path
from services.webhook_dispatcher import WebhookDispatcher

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = 'EUR'
DEFAULT_VALUE = 1000  # 10 EUR in minor units
DEFAULT_COUNTRY = 'NL'
DEFAULT_LOCALE = 'en-US'

RESULT_TITLES = {
    OutcomePage.SUCCESS: "Payment successful",
    OutcomePage.PENDING: "Payment pending",
    OutcomePage.FAILED: "Payment failed",
    OutcomePage.ERROR: "Something went wrong",
}


class CheckoutAPI:
    """
    REST API for the checkout flow.

    Endpoints:
    - POST /api/payment-methods - Available payment methods
    - POST /api/sessions - Create a checkout session
    - GET|POST /api/handleShopperRedirect - Finish a redirect payment
    - POST /api/payments - Submit a payment
    - POST /api/payments-details - Submit additional payment details
    - POST /api/webhooks/notifications - Gateway notifications
    - GET /api/health - Health check
    - GET /result/{outcome} - Result landing pages
    """

    def __init__(
        self,
        config: Config,
        gateway: GatewayClient,
        dispatcher: Optional[WebhookDispatcher] = None
    ):
        """
        Initialize the API.

        Args:
            config: Service configuration
            gateway: Started gateway client
            dispatcher: Webhook dispatcher (built from the HMAC key if omitted)
        """
        self.config = config
        self.gateway = gateway
        self.dispatcher = dispatcher or WebhookDispatcher(config.gateway.hmac_key)

    def setup_routes(self, app: web.Application) -> None:
        """
        Set up API routes.

        Args:
            app: aiohttp web application
        """
        app.router.add_post('/api/payment-methods', self.payment_methods)
        app.router.add_post('/api/sessions', self.create_session)
        app.router.add_route('*', '/api/handleShopperRedirect', self.handle_shopper_redirect)
        app.router.add_post('/api/payments', self.submit_payment)
        app.router.add_post('/api/payments-details', self.submit_payment_details)
        app.router.add_post('/api/webhooks/notifications', self.webhook_notifications)
        app.router.add_get('/api/health', self.health_check)
        app.router.add_get('/result/{outcome}', self.result_page)

    async def payment_methods(self, request: web.Request) -> web.Response:
        """
        Get available payment methods.

        Request body:
        {
            "shopperLocale": "en-US",
            "countryCode": "NL" (optional)
        }
        """
        data = await _read_json(request)
        if data is None:
            return _invalid_json()

        try:
            response = await self.gateway.list_payment_methods(
                locale=data.get('shopperLocale') or DEFAULT_LOCALE,
                country_code=data.get('countryCode')
            )
        except GatewayError as e:
            return _gateway_error_response(e)

        return web.json_response(response)

    async def create_session(self, request: web.Request) -> web.Response:
        """
        Create a checkout session.

        Query parameters: currency, value (minor units), countryCode.
        """
        try:
            value = int(request.query.get('value', DEFAULT_VALUE))
        except ValueError:
            return web.json_response(
                {"error": "value must be an integer amount in minor units"},
                status=400
            )

        session_request = PaymentSessionRequest.for_order(
            amount=Amount(
                currency=request.query.get('currency', DEFAULT_CURRENCY),
                value=value
            ),
            country_code=request.query.get('countryCode', DEFAULT_COUNTRY),
            merchant_account=self.config.gateway.merchant_account,
            public_url=self.config.server.public_url
        )

        try:
            response = await self.gateway.create_session(session_request)
        except GatewayError as e:
            return _gateway_error_response(e)

        return web.json_response({
            "response": response,
            "clientKey": self.config.gateway.client_key
        })

    async def handle_shopper_redirect(self, request: web.Request) -> web.Response:
        """
        Finish a payment after the shopper returns from a redirect.

        Always answers with a redirect to one of the result pages.
        """
        if request.method == 'GET':
            redirect = request.query
        elif request.content_type == 'application/json':
            redirect = await _read_json(request) or {}
        else:
            redirect = await request.post()

        details = {}
        if redirect.get('redirectResult'):
            details['redirectResult'] = redirect['redirectResult']
        elif redirect.get('payload'):
            details['payload'] = redirect['payload']

        if not details:
            logger.warning("Shopper redirect without redirectResult or payload")
            raise web.HTTPFound(result_path(OutcomePage.ERROR))

        try:
            response = await self.gateway.submit_payment_details({'details': details})
        except GatewayError:
            raise web.HTTPFound(result_path(OutcomePage.ERROR))

        outcome = resolve(response.get('resultCode'))
        logger.info(
            f"Shopper redirect for {request.query.get('orderRef', 'unknown order')} "
            f"resolved to {outcome.value}"
        )
        raise web.HTTPFound(result_path(outcome))

    async def submit_payment(self, request: web.Request) -> web.Response:
        """
        Submit a payment.

        The request body is forwarded as-is, with the merchant account
        and a fresh payment reference filled in.
        """
        data = await _read_json(request)
        if data is None:
            return _invalid_json()

        payment_id = generate_reference()
        payload = dict(data)
        payload['merchantAccount'] = self.config.gateway.merchant_account
        payload['reference'] = payment_id
        payload.setdefault(
            'returnUrl',
            f"{self.config.server.public_url}/api/handleShopperRedirect?orderRef={payment_id}"
        )

        try:
            response = await self.gateway.submit_payment(payload)
        except GatewayError as e:
            return _gateway_error_response(e)

        outcome = PaymentOutcome.from_gateway_response(response, payment_id)
        return web.json_response(outcome.to_dict())

    async def submit_payment_details(self, request: web.Request) -> web.Response:
        """
        Submit additional details for an existing payment.

        Request body:
        {
            "paymentId": "...",
            ...details payload
        }
        """
        data = await _read_json(request)
        if data is None:
            return _invalid_json()

        payload = dict(data)
        payment_id = payload.pop('paymentId', None)
        if not payment_id:
            return web.json_response(
                {"error": "paymentId is required"},
                status=400
            )

        try:
            response = await self.gateway.submit_payment_details(payload)
        except GatewayError as e:
            return _gateway_error_response(e)

        outcome = PaymentOutcome.from_gateway_response(response, payment_id)
        return web.json_response(outcome.to_dict())

    async def webhook_notifications(self, request: web.Request) -> web.Response:
        """
        Receive a batch of gateway notifications.

        Answers "[accepted]" only when every notification in the batch
        carries a valid HMAC signature.
        """
        data = await _read_json(request)

        try:
            batch = NotificationBatch.from_body(data)
        except ValidationError as e:
            logger.warning(f"Rejected malformed notification batch: {e}")
            return web.json_response({"error": str(e)}, status=400)

        verdict = self.dispatcher.dispatch(batch)

        if not verdict.is_accepted:
            return web.Response(status=401, text="Invalid HMAC signature")

        return web.Response(text="[accepted]")

    async def health_check(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({
            "status": "healthy",
            "service": self.config.service.name,
            "environment": self.config.gateway.environment
        })

    async def result_page(self, request: web.Request) -> web.Response:
        """Minimal landing page for a payment outcome."""
        try:
            outcome = OutcomePage(request.match_info['outcome'])
        except ValueError:
            raise web.HTTPNotFound()

        title = RESULT_TITLES[outcome]
        return web.Response(
            text=(
                "<!DOCTYPE html>\n"
                f"<html><head><title>{title}</title></head>"
                f"<body><h1>{title}</h1><a href=\"/\">Return to shop</a></body></html>"
            ),
            content_type='text/html'
        )


async def _read_json(request: web.Request) -> Optional[Dict[str, Any]]:
    """Parse a JSON object body; None if it is missing or malformed."""
    if not request.can_read_body:
        return {}
    try:
        data = await request.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _invalid_json() -> web.Response:
    return web.json_response(
        {"error": "Invalid JSON body"},
        status=400
    )


def _gateway_error_response(error: GatewayError) -> web.Response:
    return web.json_response(error.message, status=error.status)


def create_app(
    config: Config,
    gateway: GatewayClient,
    dispatcher: Optional[WebhookDispatcher] = None
) -> web.Application:
    """
    Create and configure the aiohttp web application.

    Args:
        config: Service configuration
        gateway: Gateway client used by the payment endpoints
        dispatcher: Optional webhook dispatcher

    Returns:
        Configured aiohttp Application
    """
    app = web.Application()

    api = CheckoutAPI(
        config=config,
        gateway=gateway,
        dispatcher=dispatcher
    )

    api.setup_routes(app)

    frontend_dir = config.server.frontend_dir
    if frontend_dir:
        index_file = os.path.join(frontend_dir, 'index.html')

        async def index(request: web.Request) -> web.StreamResponse:
            if not os.path.isfile(index_file):
                raise web.HTTPNotFound()
            return web.FileResponse(index_file)

        app.router.add_get('/', index)
        app.router.add_static('/', frontend_dir)

    # Add CORS middleware
    @web.middleware
    async def cors_middleware(request, handler):
        if request.method == "OPTIONS":
            response = web.Response()
        else:
            response = await handler(request)

        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, DELETE, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
        return response

    app.middlewares.append(cors_middleware)

    # Error handling middleware
    @web.middleware
    async def error_middleware(request, handler):
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unhandled error: {e}", exc_info=True)
            return web.json_response(
                {"error": "Internal server error"},
                status=500
            )

    app.middlewares.append(error_middleware)

    return app
