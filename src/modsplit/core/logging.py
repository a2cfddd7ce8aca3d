"""Logging helpers for :mod:`modsplit`.

Console output goes through Rich on standard error so that ``modsplit``
commands can print JSON or rewritten modules on standard output. When a log
directory is configured every event is also written as one JSON object per
line, rotated daily.
"""

from __future__ import annotations

from contextlib import contextmanager
import gzip
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
import shutil
from typing import Any, Iterable, Iterator

from rich.console import Console
from rich.logging import RichHandler
import structlog

Logger = structlog.stdlib.BoundLogger

DEFAULT_LOG_FILENAME = "modsplit.log"
_BACKUP_DAYS = 7

_TIMESTAMPER = structlog.processors.TimeStamper(fmt="iso", utc=True)
_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    _TIMESTAMPER,
]


def normalize_level(level: str) -> int:
    """Return the logging module level constant for ``level``.

    Raises:
        ValueError: If the level name is not recognized.

    Example:
        >>> normalize_level(" debug ")
        10
    """

    name = level.strip().upper()
    value = logging.getLevelName(name)
    if isinstance(value, str):  # ``getLevelName`` echoes unknown names.
        raise ValueError(f"Unsupported log level: {level!r}")
    return value


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as target:
        shutil.copyfileobj(src, target)
    Path(source).unlink(missing_ok=True)


def _json_file_handler(log_file: Path, level: int) -> logging.Handler:
    """Return a midnight-rotating JSON handler that gzips old files."""

    handler = TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=_BACKUP_DAYS,
        utc=True,
        encoding="utf-8",
        delay=True,
    )
    handler.suffix = "%Y-%m-%d"
    handler.namer = lambda name: f"{name}.gz"
    handler.rotator = _gzip_rotator
    handler.setLevel(level)
    handler.setFormatter(
        _formatter(structlog.processors.JSONRenderer(sort_keys=True))
    )
    return handler


def _rich_handler(level: int, console: Console | None) -> logging.Handler:
    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        enable_link_path=False,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    handler.setLevel(level)
    handler.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=False)))
    return handler


def _install_handlers(
    root: logging.Logger,
    handlers: Iterable[logging.Handler],
) -> None:
    for previous in list(root.handlers):
        root.removeHandler(previous)
        previous.close()
    for handler in handlers:
        root.addHandler(handler)


def configure_logging(
    *,
    level: str = "INFO",
    log_dir: str | Path | None = None,
    console: Console | None = None,
) -> Path | None:
    """Route structlog events through stdlib logging.

    Args:
        level: Log level name to apply to the root logger (case-insensitive).
        log_dir: Optional directory that receives ``modsplit.log``.
        console: Optional Rich console override, primarily for testing.

    Returns:
        The log file path when file logging is enabled, otherwise ``None``.

    Raises:
        ValueError: If ``level`` is not a recognized log level name.

    Example:
        >>> path = configure_logging(level="debug", log_dir="/tmp/modsplit-logs")
        >>> get_logger(__name__).info("configured", example=True)
        >>> path.name
        'modsplit.log'
    """

    numeric_level = normalize_level(level)

    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handlers = [_rich_handler(numeric_level, console)]
    log_file: Path | None = None
    if log_dir is not None:
        directory = Path(log_dir).expanduser().resolve(strict=False)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / DEFAULT_LOG_FILENAME
        handlers.append(_json_file_handler(log_file, numeric_level))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    _install_handlers(root, handlers)
    logging.captureWarnings(True)
    return log_file


@contextmanager
def module_context(path: str | Path, **context: Any) -> Iterator[None]:
    """Tag every event logged inside the block with the module being scanned.

    Example:
        >>> with module_context("lib/util.js"):
        ...     structlog.contextvars.get_contextvars()["module"]
        'lib/util.js'
    """

    with structlog.contextvars.bound_contextvars(module=str(path), **context):
        yield


def get_logger(name: str | None = None, **initial_context: Any) -> Logger:
    """Return a structured logger bound to an optional context.

    Example:
        >>> logger = get_logger(__name__, component="resolver")
        >>> isinstance(logger, structlog.stdlib.BoundLogger)
        True
    """

    return structlog.get_logger(name).bind(**initial_context)


__all__ = [
    "DEFAULT_LOG_FILENAME",
    "Logger",
    "configure_logging",
    "get_logger",
    "module_context",
    "normalize_level",
]
