"""
Run the abicat HTTP server: ``python -m abicat``
"""

import logging

import uvicorn

from abicat.api import create_app
from abicat.config import Settings
from abicat.contracts.service import ContractsService
from abicat.logging_setup import configure_logging

LOGGER = logging.getLogger("abicat")


def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if not settings.etherscan_api_key:
        LOGGER.warning("ETHERSCAN_API_KEY is not set, every fetch will fail")

    service = ContractsService.create(settings)
    app = create_app(service)
    LOGGER.info("Server is running on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
