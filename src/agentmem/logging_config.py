# src/agentmem/logging_config.py
"""
Logging setup for applications embedding agentmem.

agentmem itself only emits records through module loggers
(``logging.getLogger(__name__)``); it never installs handlers on import.
Applications call :func:`configure_logging` once at startup to get:

- A console handler gated by :class:`DisplayFilter`. With
  ``console_enabled=False`` (the default) only records logged with
  ``extra={"display": True}`` reach the console.
- An optional rotating file handler.
- Per-component log levels (e.g. ``aiosqlite`` at WARNING).

Usage:
    from agentmem.config import LoggingConfig
    from agentmem.logging_config import configure_logging, log_display

    configure_logging("my-agent", LoggingConfig(file_enabled=True))

    logger = logging.getLogger("my_agent.sync")
    log_display(logger, logging.INFO, "Flushed %d conversations", count)
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .config.models import LoggingConfig

_console_handler: Optional[logging.Handler] = None
_file_handler: Optional[logging.Handler] = None
_log_file_path: Optional[Path] = None


def _resolve_level(name: str, default: int) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


class DisplayFilter(logging.Filter):
    """Decides which records pass to the console handler.

    When the console is globally enabled every record passes and the
    handler level does the filtering. Otherwise only records carrying
    ``display=True`` at or above ``display_min_level`` pass.
    """

    def __init__(
        self,
        console_globally_enabled: bool = False,
        display_min_level: int = logging.INFO,
    ) -> None:
        super().__init__()
        self.console_globally_enabled = console_globally_enabled
        self.display_min_level = display_min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_globally_enabled:
            return True
        if getattr(record, "display", False):
            return record.levelno >= self.display_min_level
        return False


def _create_file_handler(config: LoggingConfig) -> tuple[Optional[logging.Handler], Optional[Path]]:
    log_file_path = Path(os.path.expanduser(config.file_path))
    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_file_path,
            maxBytes=config.rotation_max_bytes,
            backupCount=config.rotation_backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Cannot create log file {log_file_path}: {e}\n")
        return None, None

    handler.setLevel(_resolve_level(config.file_level, logging.DEBUG))
    handler.setFormatter(logging.Formatter(config.file_format))
    return handler, log_file_path


def configure_logging(
    app_name: str = "agentmem",
    config: Optional[LoggingConfig] = None,
) -> Optional[Path]:
    """
    Install console and file handlers on the root logger.

    Calling it again replaces the handlers installed by the previous call;
    handlers installed by other code are left alone.

    Args:
        app_name: Application name, used in the startup log record.
        config: Logging settings; defaults to ``LoggingConfig()``.

    Returns:
        Path of the log file if file logging is enabled, else None.
    """
    global _console_handler, _file_handler, _log_file_path
    config = config or LoggingConfig()
    root_logger = logging.getLogger()

    for handler in (_console_handler, _file_handler):
        if handler is not None:
            root_logger.removeHandler(handler)
            handler.close()
    _console_handler = _file_handler = _log_file_path = None

    root_logger.setLevel(logging.DEBUG)

    display_filter = DisplayFilter(
        console_globally_enabled=config.console_enabled,
        display_min_level=_resolve_level(config.display_min_level, logging.INFO),
    )
    console_handler = logging.StreamHandler(sys.stderr)
    if config.console_enabled:
        console_handler.setLevel(_resolve_level(config.console_level, logging.WARNING))
    else:
        # The filter is the only gate when the console is "off".
        console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter(config.console_format))
    console_handler.addFilter(display_filter)
    root_logger.addHandler(console_handler)
    _console_handler = console_handler

    if config.file_enabled:
        _file_handler, _log_file_path = _create_file_handler(config)
        if _file_handler is not None:
            root_logger.addHandler(_file_handler)

    for component_name, level_str in config.components.items():
        level = logging.getLevelName(level_str.upper())
        if isinstance(level, int):
            logging.getLogger(component_name).setLevel(level)

    logging.getLogger(__name__).debug(
        f"Logging configured for '{app_name}'. Log file: {_log_file_path}"
    )
    return _log_file_path


def log_display(
    logger: logging.Logger,
    level: int,
    msg: str,
    *args: Any,
    **kwargs: Any,
) -> None:
    """Log a message that reaches the console even when it is disabled.

    ``display_min_level`` still applies. An ``extra`` mapping passed by the
    caller is merged, not replaced.
    """
    extra = dict(kwargs.pop("extra", None) or {})
    extra["display"] = True
    kwargs["extra"] = extra
    logger.log(level, msg, *args, **kwargs)


def get_log_file_path() -> Optional[Path]:
    """Get the current log file path."""
    return _log_file_path
