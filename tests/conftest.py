"""Shared fixtures: test configuration and an in-process stub gateway."""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from api.checkout_api import create_app
from config import Config, GatewayConfig, LoggingConfig, ServerConfig, ServiceConfig
from services.gateway_client import GatewayClient

HMAC_KEY = "44782DEF547AAA06C910C43932B1EB0C71FC68D9D0C057550C48EC2ACF6BA056"


class StubGateway:
    """
    Records every call and answers with a canned response per path.

    Paths without a canned response echo the request body back.
    """

    def __init__(self):
        self.requests = []
        self.responses = {}
        self.url = None

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.requests.append({
            'path': request.path,
            'api_key': request.headers.get('X-API-Key'),
            'body': body
        })

        status, payload = self.responses.get(request.path, (200, None))
        if payload is None:
            payload = dict(body)
        return web.json_response(payload, status=status)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post('/{tail:.*}', self.handle)
        return app


@pytest.fixture
def config():
    return Config(
        gateway=GatewayConfig(
            api_key='test_api_key',
            merchant_account='TestMerchant',
            client_key='test_client_key',
            hmac_key=HMAC_KEY
        ),
        server=ServerConfig(
            host='localhost',
            port=8080,
            public_url='http://localhost:8080'
        ),
        logging=LoggingConfig(level='DEBUG', file=None),
        service=ServiceConfig(name='CheckoutBackendTest')
    )


@pytest_asyncio.fixture
async def stub_gateway():
    stub = StubGateway()
    server = TestServer(stub.app())
    await server.start_server()
    stub.url = str(server.make_url('/'))
    yield stub
    await server.close()


@pytest_asyncio.fixture
async def gateway(config, stub_gateway):
    client = GatewayClient(config.gateway, base_url=stub_gateway.url)
    await client.start()
    yield client
    await client.stop()


@pytest_asyncio.fixture
async def api_client(config, gateway):
    client = TestClient(TestServer(create_app(config, gateway)))
    await client.start_server()
    yield client
    await client.close()
