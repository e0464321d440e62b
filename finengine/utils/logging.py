"""One-line key=value log records tagged with the current request and calculator.

``run_calculation`` opens a :func:`request_context` per call and every public
calculator runs inside a :func:`calculator_context`, so a record logged
anywhere below them carries both tags without threading them through
arguments.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional, TextIO

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
calculator_var: ContextVar[str] = ContextVar("calculator", default="-")

_CONTEXT_FIELDS = (("request_id", request_id_var), ("calculator", calculator_var))


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for name, var in _CONTEXT_FIELDS:
            setattr(record, name, var.get())
        return True


class KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        tags = " ".join(f"{name}={getattr(record, name, '-')}" for name, _ in _CONTEXT_FIELDS)
        line = f"{ts} level={record.levelname} logger={record.name} {tags} msg={record.getMessage()}"
        if record.exc_info:
            # keep the traceback on indented lines under its record
            trace = self.formatException(record.exc_info)
            line += "\n" + "\n".join("  " + t for t in trace.splitlines())
        return line


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    # Replace handlers (avoid duplicate logs on repeated setup)
    root.handlers = []

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(lvl)
    handler.addFilter(ContextFilter())
    handler.setFormatter(KeyValueFormatter())

    root.addHandler(handler)


@contextmanager
def request_context(request_id: str) -> Iterator[str]:
    """Tag records logged inside the block with ``request_id``; the previous id comes back on exit."""
    token = request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        request_id_var.reset(token)


@contextmanager
def calculator_context(name: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``calculator=name``; nests."""
    token = calculator_var.set(name)
    try:
        yield
    finally:
        calculator_var.reset(token)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
