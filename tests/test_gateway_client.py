"""
Tests for the gateway client against an in-process stub gateway.

Run with: pytest tests/test_gateway_client.py -v
"""

import pytest

from models.payment import Amount, PaymentSessionRequest
from services.gateway_client import GatewayClient, GatewayError


@pytest.mark.asyncio
async def test_create_session_round_trip(gateway, stub_gateway):
    request = PaymentSessionRequest.for_order(
        amount=Amount(currency='EUR', value=1000),
        country_code='NL',
        merchant_account='TestMerchant',
        public_url='http://localhost:8080'
    )

    response = await gateway.create_session(request)

    assert response['merchantAccount'] == 'TestMerchant'
    assert response['reference'] == request.reference

    call = stub_gateway.requests[0]
    assert call['path'] == '/sessions'
    assert call['api_key'] == 'test_api_key'
    assert call['body'] == request.to_dict()


@pytest.mark.asyncio
async def test_list_payment_methods(gateway, stub_gateway):
    stub_gateway.responses['/paymentMethods'] = (
        200, {'paymentMethods': [{'type': 'scheme', 'name': 'Cards'}]}
    )

    response = await gateway.list_payment_methods('nl-NL', 'NL')

    assert response == {'paymentMethods': [{'type': 'scheme', 'name': 'Cards'}]}
    assert stub_gateway.requests[0]['body'] == {
        'merchantAccount': 'TestMerchant',
        'shopperLocale': 'nl-NL',
        'channel': 'Web',
        'countryCode': 'NL'
    }


@pytest.mark.asyncio
async def test_submit_payment_details_path(gateway, stub_gateway):
    stub_gateway.responses['/payments/details'] = (200, {'resultCode': 'Authorised'})

    response = await gateway.submit_payment_details({'details': {'redirectResult': 'abc'}})

    assert response == {'resultCode': 'Authorised'}
    assert stub_gateway.requests[0]['path'] == '/payments/details'


@pytest.mark.asyncio
async def test_error_response_raises_gateway_error(gateway, stub_gateway):
    stub_gateway.responses['/payments'] = (422, {
        'status': 422,
        'errorCode': '14_004',
        'message': 'Missing payment method details',
        'errorType': 'validation'
    })

    with pytest.raises(GatewayError) as exc_info:
        await gateway.submit_payment({'reference': 'pay-1'})

    assert exc_info.value.status == 422
    assert exc_info.value.message == 'Missing payment method details'
    assert exc_info.value.error_code == '14_004'


@pytest.mark.asyncio
async def test_unreachable_gateway(config):
    client = GatewayClient(config.gateway, base_url='http://127.0.0.1:1')
    await client.start()
    try:
        with pytest.raises(GatewayError) as exc_info:
            await client.submit_payment({})
    finally:
        await client.stop()

    assert exc_info.value.status == 502


@pytest.mark.asyncio
async def test_not_started(config):
    client = GatewayClient(config.gateway)

    with pytest.raises(RuntimeError):
        await client.submit_payment({})


def test_parse_non_json_error():
    error = GatewayClient._parse_error(500, 'Internal Server Error')

    assert error.status == 500
    assert error.message == 'Internal Server Error'
    assert error.error_code is None


@pytest.mark.parametrize('body', ['<html>OK</html>', '["a", "b"]', '"text"', 'null'])
def test_parse_malformed_success_body(body):
    with pytest.raises(GatewayError) as exc_info:
        GatewayClient._parse_success('/payments', body)

    assert exc_info.value.status == 502


def test_parse_empty_success_body():
    assert GatewayClient._parse_success('/payments', '') == {}
