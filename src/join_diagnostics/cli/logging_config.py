"""
Centralized logging configuration for the CLI.

Configure once in the entry point, not per module. structlog events from the
core are routed through stdlib logging so they share its handlers and levels
and never interleave with report output on stdout.
"""

import logging
import sys
from typing import Any

import structlog


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def configure_logging(level: int | str = logging.WARNING, config: dict[str, Any] | None = None) -> None:
    """
    Configure Python logging for the entire application.

    Truly idempotent: safe to call multiple times without side effects.
    Checks if root logger already has handlers before configuring.

    Args:
        level: Root level, used when config does not set root_level
        config: Output of load_logging_config() (per-module levels, format)
    """
    _configure_structlog()

    root_logger = logging.getLogger()

    # Only configure if no handlers exist (truly idempotent)
    if root_logger.handlers:
        return

    config = config or {}
    logging.basicConfig(
        level=config.get("root_level", level),
        format=config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        # stderr keeps stdout free for the rendered report
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    for name, module_level in config.get("module_levels", {}).items():
        logging.getLogger(name).setLevel(module_level)

    # Reduce noise
    for name, module_level in config.get("reduce_noise", {}).items():
        logging.getLogger(name).setLevel(module_level)
