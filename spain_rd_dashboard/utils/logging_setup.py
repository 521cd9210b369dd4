"""Logging configuration for scripts and notebooks using the pipeline."""

import logging
from pathlib import Path
from typing import List, Optional

from spain_rd_dashboard.config.settings import LoggingConfig

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    config: Optional[LoggingConfig] = None,
    verbose: bool = False,
    name: str = "spain_rd_dashboard",
) -> logging.Logger:
    """Configure root logging from the settings' logging section.

    Args:
        config: Logging configuration (level, format, optional file, console).
            Defaults to ``LoggingConfig()``.
        verbose: If True, force DEBUG level regardless of ``config.level``.
        name: Name of the logger returned to the caller.

    Returns:
        Configured logger instance
    """
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.INFO)

    handlers: List[logging.Handler] = []
    if config.console:
        handlers.append(logging.StreamHandler())
    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=level,
        format=config.format,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    return logging.getLogger(name)
