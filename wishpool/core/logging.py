import sys
from typing import Optional

from loguru import logger

# Services attach cycle/seed/participant context with logger.bind(); render it.
LOG_FORMAT = "{time} | {level} | {module}:{function}:{line} | {message} | {extra}"


def setup_logging(level: str, log_path: Optional[str]) -> None:
    logger.remove()
    logger.configure(extra={"app": "wishpool"})
    logger.add(
        sys.stderr,
        level=level,
        format=LOG_FORMAT,
    )
    if not log_path:
        return
    logger.add(
        log_path,
        level="DEBUG",
        format=LOG_FORMAT,
        rotation="100 KB",
        compression="zip",
    )
