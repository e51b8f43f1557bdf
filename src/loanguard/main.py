"""
Main entry point for the LoanGuard API server.
"""

import uvicorn

from loanguard.config import settings
from loanguard.logging import get_logger

logger = get_logger(__name__)


def main():
    """Run the LoanGuard API server."""
    logger.info("Starting LoanGuard service...")

    uvicorn.run(
        "loanguard.api:app",
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.monitoring.log_level.lower(),
    )


if __name__ == "__main__":
    main()
