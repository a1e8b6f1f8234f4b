"""
Webhook notification signature verification.

The gateway signs each notification with HMAC-SHA256 over a fixed
subset of its fields, using a hex-encoded key shared with the
merchant. The base64 signature travels in
``additionalData.hmacSignature``.
"""

import base64
import binascii
import hashlib
import hmac
import logging
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

SIGNATURE_FIELD = 'hmacSignature'

# Order matters: these are joined with ':' to form the signed payload
SIGNED_FIELDS = (
    'pspReference',
    'originalReference',
    'merchantAccountCode',
    'merchantReference',
    'value',
    'currency',
    'eventCode',
    'success',
)


def _text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def signing_payload(notification: Mapping[str, Any]) -> str:
    """
    Build the string the gateway signs for a notification.

    Absent fields contribute an empty string.
    """
    amount = notification.get('amount')
    if not isinstance(amount, Mapping):
        amount = {}

    values = {
        'value': amount.get('value'),
        'currency': amount.get('currency'),
    }
    return ':'.join(
        _text(values[name] if name in values else notification.get(name))
        for name in SIGNED_FIELDS
    )


def _decode_key(hmac_key: str) -> Optional[bytes]:
    try:
        key = binascii.unhexlify(hmac_key)
    except (binascii.Error, TypeError, ValueError):
        return None
    return key or None


def sign(notification: Mapping[str, Any], hmac_key: str) -> str:
    """
    Compute the base64 HMAC-SHA256 signature for a notification.

    Args:
        notification: NotificationRequestItem mapping
        hmac_key: Hex-encoded HMAC key

    Returns:
        Base64-encoded signature

    Raises:
        ValueError: If the key is not valid hex
    """
    key = _decode_key(hmac_key)
    if key is None:
        raise ValueError("HMAC key must be a non-empty hex string")

    digest = hmac.new(
        key,
        signing_payload(notification).encode('utf-8'),
        hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode('ascii')


def verify(notification: Any, hmac_key: str) -> bool:
    """
    Check a notification's embedded signature.

    Never raises: anything malformed (missing signature, bad key,
    non-mapping notification, unencodable text) verifies as False.

    Args:
        notification: NotificationRequestItem mapping
        hmac_key: Hex-encoded HMAC key

    Returns:
        True if the signature matches
    """
    if not isinstance(notification, Mapping):
        return False

    additional_data = notification.get('additionalData')
    if not isinstance(additional_data, Mapping):
        return False

    received = additional_data.get(SIGNATURE_FIELD)
    if not isinstance(received, str) or not received:
        return False

    if _decode_key(hmac_key) is None:
        logger.error("HMAC key is not a valid hex string")
        return False

    try:
        expected = sign(notification, hmac_key)
        return hmac.compare_digest(expected.encode('ascii'), received.encode('ascii'))
    except UnicodeEncodeError:
        # Lone surrogates or a non-base64 signature can never match
        return False
