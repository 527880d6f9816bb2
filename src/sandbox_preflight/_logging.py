"""Centralized logging for sandbox-preflight.

Library logging conventions (Python docs, PEP 282):
- Attach NullHandler to library root logger
- Never add other handlers -- that's the application's job
- Support SANDBOX_PREFLIGHT_LOG_LEVEL env var for level control
- Provide configure_logging() for CLI entry points

CLI output format:
    DEBUG [2026-02-25 10:02:54] sandbox_preflight.evaluator - Kernel module 'kvm' loaded [kernel_module=kvm]

Structured context:
    Probes attach what they looked at through ``extra={...}`` (module,
    parameter, path, errno).  The CLI handler renders those fields as a
    sorted ``key=value`` suffix so an operator reading ``sbx-check -v`` sees
    which requirement each line is about.  Nested dicts (the evaluator's
    ``requirement`` context) are flattened one level.

A check is one short synchronous pass, so records are written to stderr
directly from the calling thread.
"""

import logging
import os
from typing import Any

import click

LIBRARY_LOGGER_NAME: str = "sandbox_preflight"

logging.getLogger(LIBRARY_LOGGER_NAME).addHandler(logging.NullHandler())

# Honor SANDBOX_PREFLIGHT_LOG_LEVEL env var (e.g. "DEBUG", "WARNING", "ERROR")
_env_level = os.environ.get("SANDBOX_PREFLIGHT_LOG_LEVEL", "").strip().upper()
_env_level_value = logging.getLevelNamesMapping().get(_env_level)
if _env_level_value:  # excludes NOTSET (0) and missing keys (None)
    logging.getLogger(LIBRARY_LOGGER_NAME).setLevel(_env_level_value)

_FMT = "%(levelname)s [%(asctime)s] %(name)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came from extra={...}
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_LEVEL_STYLES: dict[int, dict[str, Any]] = {
    logging.DEBUG: {"dim": True},
    logging.WARNING: {"fg": "yellow"},
    logging.ERROR: {"fg": "red"},
}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the extra={...} fields of a record, flattening nested dicts one level."""
    context: dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        if isinstance(value, dict):
            context.update(value)
        else:
            context[key] = value
    return context


class _ContextFormatter(logging.Formatter):
    """Formatter that appends a record's structured context as ``[k=v ...]``."""

    def __init__(self) -> None:
        super().__init__(fmt=_FMT, datefmt=_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = record_context(record)
        if not context:
            return text
        fields = " ".join(f"{key}={value}" for key, value in sorted(context.items()) if value is not None)
        return f"{text} [{fields}]" if fields else text


class _ClickHandler(logging.Handler):
    """Writes records to stderr via click.echo, styled by level.

    click.echo() strips ANSI codes when stderr is not a TTY.
    """

    def __init__(self) -> None:
        super().__init__()
        self.setFormatter(_ContextFormatter())

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            style = _LEVEL_STYLES.get(record.levelno, {})
            click.echo(click.style(msg, **style), err=True)
        except Exception:  # noqa: BLE001
            self.handleError(record)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name."""
    return logging.getLogger(name)


def configure_logging(
    *,
    level: int | str | None = None,
    quiet: bool = False,
) -> None:
    """Configure library logging for CLI / application entry points.

    Adds a _ClickHandler if none exists (idempotent), then sets the
    log level.  Consumers who configure their own handlers are unaffected.

    Args:
        level: Log level (e.g. logging.DEBUG, "WARNING"). Overrides env var.
        quiet: If True, set level to ERROR. Takes precedence over level.
    """
    lib_logger = logging.getLogger(LIBRARY_LOGGER_NAME)

    if not any(isinstance(h, _ClickHandler) for h in lib_logger.handlers):
        lib_logger.addHandler(_ClickHandler())

    if quiet:
        lib_logger.setLevel(logging.ERROR)
    elif level is not None:
        lib_logger.setLevel(level)
