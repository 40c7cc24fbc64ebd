"""
Structured JSON logging for the valorizaciones packages.

Every logger lives under the ``obras_kernel`` namespace and writes one JSON
object per line: ``ts``, ``level``, ``logger``, ``message``, the bound
context (``obra_id``, ``valorizacion_id``, ``actor_id``) and whatever the
call site passed in ``extra``.  Decimal amounts and dates are written as
strings so a breakdown logged by an engine can be compared digit for digit.
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from obras_kernel.exceptions import ObrasKernelError

_LOGGER_PREFIX = "obras_kernel"

_CONTEXT_FIELDS = ("obra_id", "valorizacion_id", "actor_id")

_context: ContextVar[dict[str, str]] = ContextVar("obras_log_context", default={})


class LogContext:
    """Request-scoped fields merged into every record (contextvars based)."""

    @staticmethod
    def set(**fields: str | None) -> None:
        """Merge non-None fields into the current context."""
        _context.set({**_context.get(), **_validated(fields)})

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """Bind fields for the duration of a ``with`` block."""
        token = _context.set({**_context.get(), **_validated(fields)})
        try:
            yield
        finally:
            _context.reset(token)


def _validated(fields: dict[str, str | None]) -> dict[str, str]:
    unknown = set(fields) - set(_CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context field(s): {sorted(unknown)}")
    return {k: v for k, v in fields.items() if v is not None}


_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    match obj:
        case Enum():
            return obj.value
        case Decimal() | UUID():
            return str(obj)
        case datetime() | date():
            return obj.isoformat()
        case _:
            return str(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        for key, val in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, val)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        if isinstance(exc, ObrasKernelError):
            # Kernel errors carry their identifying attributes (obra_id,
            # estado_actual, ...) next to the machine-readable code.
            fields["exc_code"] = exc.code
            fields.update(
                (f"exc_{k}", v) for k, v in vars(exc).items() if not k.startswith("_")
            )
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger ``obras_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one structured handler to the namespace root.  Idempotent."""
    root = logging.getLogger(_LOGGER_PREFIX)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    root.setLevel(level)
    root.propagate = False
    h = handler or logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Detach all handlers and restore defaults (tests)."""
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
