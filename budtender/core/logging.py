# budtender/core/logging.py
import logging
import sys
from typing import Iterable, Optional, Union

import colorlog

FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
COLOR_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}
# The OpenAI client logs every request through httpx
DEFAULT_QUIET = ("pymongo", "httpx", "httpcore", "openai")


def _formatter(color: bool) -> logging.Formatter:
    if color:
        return colorlog.ColoredFormatter(COLOR_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS)
    # log shippers want full timestamps and no ANSI codes
    return logging.Formatter(FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    color: Optional[bool] = None,
    quiet: Iterable[str] = DEFAULT_QUIET,
    stream=None,
) -> logging.Handler:
    """
    Install one stdout handler on the root logger.

    `color=None` colours only when the stream is a terminal. uvicorn's loggers
    follow the root level; `quiet` loggers are held at WARNING unless the root
    level is already stricter.
    """
    stream = stream or sys.stdout
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")
    if color is None:
        color = hasattr(stream, "isatty") and stream.isatty()

    handler = colorlog.StreamHandler(stream)
    handler.setFormatter(_formatter(color))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)

    for noisy in quiet:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
    return handler
