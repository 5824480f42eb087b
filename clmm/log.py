"""structlog setup for entry points. Library code only calls get_logger()."""

import logging

import structlog


def configure_logging(level: str | int = "INFO", json_output: bool = False) -> None:
    """Configure structlog for a script or service.

    Args:
        level: Minimum level, as a name ("DEBUG") or a logging constant
        json_output: Emit JSON lines instead of console output
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
