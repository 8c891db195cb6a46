"""
Logging setup for the batch generator.

Every line carries the batch it belongs to. Services bind ``batch_id`` on
their logger while a batch runs; lines logged outside a batch show ``-``.
"""

import sys
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

NO_BATCH = "-"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[batch_id]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[batch_id]} | {name}:{function}:{line} | {message}"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    colorize: bool = True,
) -> None:
    """
    Replace all sinks with the console sink and, optionally, a rotating file.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file
        rotation: Log rotation size
        retention: Log retention period
        colorize: Colour the console output
    """
    logger.remove()
    logger.configure(extra={"batch_id": NO_BATCH})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=colorize)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            encoding="utf-8",
        )


def get_logger(name: str, batch_id: Optional[str] = None, **context: Any) -> Any:
    """
    Get a logger bound to a component name and, optionally, a batch.

    Args:
        name: Logger name (typically __name__)
        batch_id: Batch the caller works on; omitted for process-wide loggers
        **context: Additional context fields (recipient, stage, etc.)

    Returns:
        Logger instance with bound context
    """
    if batch_id is not None:
        context["batch_id"] = batch_id
    return logger.bind(name=name, **context)


setup_logging()
