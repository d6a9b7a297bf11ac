"""
Logging setup for benchmark sessions.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def configure_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
) -> None:
    """
    Configure root logging for a benchmark session.

    Installs the stdout handler with the package's log layout, replacing any
    handlers configured earlier, and optionally mirrors the output to
    ``log_file``.

    Args:
        level: Log level name or number
        log_file: Optional file that receives the same log records
    """
    if isinstance(level, str):
        level = level.upper()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    logger.debug(f"Logging configured at level {level}" + (f", writing to {log_file}" if log_file else ""))
