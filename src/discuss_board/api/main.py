"""Discuss Board API entry point.

Provides the application instance for ASGI servers (uvicorn) and a run()
function for the ``discuss-board-api`` console script.
"""

import logging

from discuss_board.api import create_app

logger = logging.getLogger(__name__)

# uvicorn target: discuss_board.api.main:app
app = create_app()


def run() -> None:
    """Run the API server using uvicorn."""
    import uvicorn

    from discuss_board.core.config import Settings

    try:
        settings = Settings()
        host = settings.api_host
        port = settings.api_port
        log_level = settings.log_level
    except Exception:
        logger.warning("Could not load settings, using defaults")
        host = "127.0.0.1"
        port = 8000
        log_level = "INFO"

    logging.basicConfig(level=log_level)
    logger.info("Starting Discuss Board API on %s:%d", host, port)

    uvicorn.run(
        "discuss_board.api.main:app",
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
