"""
Module: sales_kernel.logging_config
Responsibility: One JSON object per log line for everything under the
    ``sales_kernel`` logger, tagged with the user and operation currently
    in progress.
Architecture position: Kernel, imported by every layer.  Imports only the
    standard library.

Each line carries ``ts``, ``level``, ``logger`` and ``message``, then any
bound context fields (``correlation_id``, ``user_id``, ``operation``),
then whatever the call site passed as ``extra``.  When a record carries an
exception, its class, message, ``code`` and public attributes are added as
``exc_*`` keys so an import or restore failure can be filtered by code.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

ROOT_LOGGER_NAME = "sales_kernel"

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"sales_log_{name}", default=None)
    for name in ("correlation_id", "user_id", "operation")
}


class LogContext:
    """
    Per-task log fields, backed by ``contextvars`` so concurrent imports
    or CLI runs in threads keep their own values.
    """

    @staticmethod
    def set(
        *,
        correlation_id: str | None = None,
        user_id: str | None = None,
        operation: str | None = None,
    ) -> None:
        """Overwrite the given fields; ``None`` leaves a field as it is."""
        given = {
            "correlation_id": correlation_id,
            "user_id": user_id,
            "operation": operation,
        }
        for name, value in given.items():
            if value is not None:
                _CONTEXT_VARS[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        current = {name: var.get() for name, var in _CONTEXT_VARS.items()}
        return {name: value for name, value in current.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @staticmethod
    def bind(**fields: str | None) -> "_BoundContext":
        """
        ``with LogContext.bind(user_id=..., operation=...):`` sets the fields
        for the block and puts the previous values back afterwards.  Names
        that are not context fields are ignored.
        """
        return _BoundContext(fields)


class _BoundContext:
    def __init__(self, fields: dict[str, str | None]):
        self._fields = {
            name: value
            for name, value in fields.items()
            if value is not None and name in _CONTEXT_VARS
        }
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            var = _CONTEXT_VARS[name]
            self._tokens.append((var, var.set(value)))
        return LogContext

    def __exit__(self, *exc_info: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for attr, value in vars(exc).items():
        if attr != "code" and not attr.startswith("_"):
            fields[f"exc_{attr}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a record as a single line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for attr, value in vars(record).items():
            if attr not in _RECORD_ATTRS:
                line.setdefault(attr, value)

        if record.exc_info and record.exc_info[1] is not None:
            line.update(_exception_fields(record.exc_info[1]))
            line["traceback"] = self.formatException(record.exc_info)

        return json.dumps(line, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """``get_logger("services.backup")`` -> ``sales_kernel.services.backup``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_state_lock = threading.Lock()
_handler_installed = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the ``sales_kernel`` logger.

    Only the first call has any effect until ``reset_logging`` runs.  The
    handler writes to ``stream`` (stderr by default) unless an explicit
    ``handler`` is given.
    """
    global _handler_installed
    with _state_lock:
        if _handler_installed:
            return
        _handler_installed = True

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.addHandler(target)
    root.propagate = False


def reset_logging() -> None:
    """Undo ``configure_logging``.  Test suites call this between cases."""
    global _handler_installed
    with _state_lock:
        _handler_installed = False

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
