#!/usr/bin/env python3
"""
Checkout Backend.

Main entry point: loads configuration, starts the gateway client and
serves the checkout API until a shutdown signal arrives.

Usage:
    python main.py

Environment variables:
    See .env.example for all configuration options.
"""

import asyncio
import logging
import os
import signal
import sys
from typing import Optional

from aiohttp import web

from config import Config
from services.gateway_client import GatewayClient
from api.checkout_api import create_app


# Configure logging
def setup_logging(config: Config):
    """Configure logging based on config."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    if config.logging.file:
        # Ensure log directory exists
        log_dir = os.path.dirname(config.logging.file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(config.logging.file))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )

    # Reduce noise from third-party libraries
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Main service orchestrator.

    Owns the gateway client and the HTTP listener.
    """

    def __init__(self, config: Config):
        self.config = config
        self.gateway: Optional[GatewayClient] = None
        self.api_runner: Optional[web.AppRunner] = None
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        """Start all services."""
        logger.info("=" * 60)
        logger.info(f"Starting {self.config.service.name}")
        logger.info("=" * 60)

        # Validate configuration
        errors = self.config.validate()
        if errors:
            for error in errors:
                logger.error(f"Configuration error: {error}")
            raise ValueError("Invalid configuration")

        self.gateway = GatewayClient(self.config.gateway)
        await self.gateway.start()

        # Start API server
        logger.info("Starting API server...")
        app = create_app(config=self.config, gateway=self.gateway)

        self.api_runner = web.AppRunner(app)
        await self.api_runner.setup()

        site = web.TCPSite(
            self.api_runner,
            self.config.server.host,
            self.config.server.port
        )
        await site.start()

        logger.info("=" * 60)
        logger.info(
            f"Server listening on http://{self.config.server.host}:{self.config.server.port}"
        )
        logger.info(f"Environment: {self.config.gateway.environment}")
        logger.info("=" * 60)

    async def stop(self) -> None:
        """Stop all services gracefully."""
        logger.info("Initiating graceful shutdown...")

        # Stop accepting new requests
        if self.api_runner:
            await self.api_runner.cleanup()

        if self.gateway:
            await self.gateway.stop()

        logger.info("Shutdown complete")
        self._shutdown_event.set()

    async def run(self) -> None:
        """Run the service until shutdown signal."""
        await self.start()

        # Wait for shutdown signal
        await self._shutdown_event.wait()

    def request_shutdown(self) -> None:
        """Request service shutdown."""
        asyncio.create_task(self.stop())


def handle_signal(service: CheckoutService, sig: signal.Signals) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received signal {sig.name}, initiating shutdown...")
    service.request_shutdown()


async def main() -> None:
    """Main entry point."""
    config = Config.from_env()
    setup_logging(config)

    service = CheckoutService(config)

    # Set up signal handlers
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: handle_signal(service, s)
        )

    try:
        await service.run()
    except Exception as e:
        logger.error(f"Service error: {e}", exc_info=True)
        await service.stop()
        sys.exit(1)


if __name__ == '__main__':
    asyncio.run(main())
