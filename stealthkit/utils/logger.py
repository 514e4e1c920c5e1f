"""
Logging for stealthkit.

All loggers live under the "stealthkit" namespace, one per subsystem
(generator, scanner, registry, announcer, cli). Output goes to stderr so
that CLI commands can print JSON on stdout.

Secret material (private keys, shared secrets, hashed secrets) must never
be passed to these loggers.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

NAMESPACE = "stealthkit"
LOG_FILE = "stealthkit.log"

# Scan workers log from pool threads, so the thread name is kept
_CONSOLE_FORMAT = "%(log_color)s%(levelname)-8s%(reset)s %(name)s [%(threadName)s] %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(threadName)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_LEVEL_COLORS = {
    "DEBUG": "blue",
    "INFO": "green",
    "WARNING": "bold_yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red,bg_white",
}


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(_CONSOLE_FORMAT, log_colors=_LEVEL_COLORS))
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


class StealthLogger:
    """Owns the handlers attached to the stealthkit namespace logger"""

    _initialized = False

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[Union[str, Path]] = None,
        log_to_file: bool = False,
        force: bool = False,
    ):
        """
        Attach handlers to the namespace logger.

        Args:
            level: Numeric logging level
            log_dir: Directory for stealthkit.log (default ./logs)
            log_to_file: Also write plain-text records to a file
            force: Replace handlers installed by an earlier call
        """
        if cls._initialized and not force:
            return

        cls.reset()
        namespace = logging.getLogger(NAMESPACE)
        namespace.setLevel(level)
        namespace.addHandler(_console_handler(level))
        if log_to_file:
            namespace.addHandler(_file_handler(Path(log_dir or "logs"), level))

        cls._initialized = True

    @classmethod
    def reset(cls):
        """Detach and close all handlers."""
        namespace = logging.getLogger(NAMESPACE)
        for handler in list(namespace.handlers):
            namespace.removeHandler(handler)
            handler.close()
        namespace.setLevel(logging.NOTSET)
        cls._initialized = False


def get_logger(name: str) -> logging.Logger:
    """Subsystem logger, e.g. get_logger("scanner") -> stealthkit.scanner"""
    return logging.getLogger(f"{NAMESPACE}.{name}")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    log_to_file: bool = False,
    force: bool = False,
):
    """Configure stealthkit logging; string levels such as "debug" are accepted."""
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = numeric
    StealthLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file, force=force)
