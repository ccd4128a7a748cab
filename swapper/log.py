"""structlog setup shared by the CLI and the server."""

import logging

import structlog


def configure_logging(debug: bool = False) -> None:
    """Render log events to the console; debug events only when asked."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
    )
