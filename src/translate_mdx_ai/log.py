"""
Logging setup for translate-mdx-ai.

Modules log through ``logging.getLogger(__name__)``; this module wires the
package logger to a rich console handler and a rotating log file.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from translate_mdx_ai.config import LoggingConfig

PACKAGE_LOGGER = "translate_mdx_ai"


def setup_logging(
    config: LoggingConfig | None = None,
    console: Console | None = None,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        config: Logging configuration. Defaults to ``LoggingConfig()``.
        console: Rich console shared with CLI output.
        verbose: Force DEBUG level on the console.

    Returns:
        The package logger.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = logging.DEBUG if verbose else logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    return logger
