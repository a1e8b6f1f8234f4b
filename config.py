"""
Configuration module for the Checkout backend.

Loads settings from environment variables with sensible defaults.
The resulting object is immutable and is passed explicitly to every
component that needs it.
"""

import binascii
import os
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from dotenv import load_dotenv


TEST_CHECKOUT_URL = 'https://checkout-test.adyen.com/v71'
LIVE_CHECKOUT_URL = 'https://{prefix}-checkout-live.adyenpayments.com/checkout/v71'

ENVIRONMENT_MODES = ('test', 'live')


def _parse_number(name: str, cast: Callable, default, errors: List[str], message: str):
    """Read a numeric env var, recording a message instead of raising."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        errors.append(message)
        return default


@dataclass(frozen=True)
class GatewayConfig:
    """Payment processor credentials and endpoint selection."""
    api_key: str
    merchant_account: str
    client_key: str
    hmac_key: str
    environment: str = 'test'
    live_url_prefix: str = ''
    timeout: Optional[float] = None  # Seconds; None waits indefinitely

    @property
    def base_url(self) -> str:
        """Checkout API root for the configured environment."""
        if self.environment == 'live':
            return LIVE_CHECKOUT_URL.format(prefix=self.live_url_prefix)
        return TEST_CHECKOUT_URL


@dataclass(frozen=True)
class ServerConfig:
    """HTTP listener configuration."""
    host: str
    port: int
    public_url: str
    frontend_dir: Optional[str] = None


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: str
    file: Optional[str]


@dataclass(frozen=True)
class ServiceConfig:
    """Service-level configuration."""
    name: str


@dataclass(frozen=True)
class Config:
    """
    Main configuration object that aggregates all config sections.

    Usage:
        config = Config.from_env()

        print(config.gateway.merchant_account)
        print(config.server.port)
    """

    gateway: GatewayConfig
    server: ServerConfig
    logging: LoggingConfig
    service: ServiceConfig
    load_errors: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Config':
        """
        Load all configuration from environment variables.

        Args:
            env_file: Optional path to a .env file (defaults to ./.env)

        Returns:
            Config instance
        """
        load_dotenv(env_file)

        load_errors: List[str] = []

        timeout = _parse_number(
            'GATEWAY_TIMEOUT', float, None, load_errors,
            "GATEWAY_TIMEOUT must be a number of seconds"
        )

        gateway = GatewayConfig(
            api_key=os.getenv('API_KEY', ''),
            merchant_account=os.getenv('MERCHANT_ACCOUNT', ''),
            client_key=os.getenv('CLIENT_KEY', ''),
            hmac_key=os.getenv('HMAC_KEY', ''),
            environment=os.getenv('ENVIRONMENT_MODE', 'test').lower(),
            live_url_prefix=os.getenv('LIVE_URL_PREFIX', ''),
            timeout=timeout
        )

        host = os.getenv('SERVER_HOST', 'localhost')
        port = _parse_number(
            'SERVER_PORT', int, 8080, load_errors,
            "SERVER_PORT must be an integer"
        )

        server = ServerConfig(
            host=host,
            port=port,
            public_url=os.getenv('PUBLIC_URL', f'http://localhost:{port}').rstrip('/'),
            frontend_dir=os.getenv('FRONTEND_DIR') or None
        )

        return cls(
            gateway=gateway,
            server=server,
            logging=LoggingConfig(
                level=os.getenv('LOG_LEVEL', 'INFO'),
                file=os.getenv('LOG_FILE')
            ),
            service=ServiceConfig(
                name=os.getenv('SERVICE_NAME', 'CheckoutBackend')
            ),
            load_errors=tuple(load_errors)
        )

    def validate(self) -> List[str]:
        """
        Validate required configuration values.

        Returns:
            List of validation error messages (empty if all valid)
        """
        errors = list(self.load_errors)

        if not self.gateway.api_key:
            errors.append("API_KEY is required")

        if not self.gateway.merchant_account:
            errors.append("MERCHANT_ACCOUNT is required")

        if not self.gateway.client_key:
            errors.append("CLIENT_KEY is required")

        if not self.gateway.hmac_key:
            errors.append("HMAC_KEY is required")
        else:
            try:
                binascii.unhexlify(self.gateway.hmac_key)
            except (binascii.Error, ValueError):
                errors.append("HMAC_KEY must be a hex-encoded key")

        if self.gateway.environment not in ENVIRONMENT_MODES:
            errors.append("ENVIRONMENT_MODE must be 'test' or 'live'")
        elif self.gateway.environment == 'live' and not self.gateway.live_url_prefix:
            errors.append("LIVE_URL_PREFIX is required in live mode")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0
