"""Process-level plumbing: structured logging and operation execution.

Every CLI invocation runs exactly one lifecycle operation inside a fresh
``OperationContext``. SIGINT and SIGTERM cancel that context, which aborts
any in-progress wait without killing the process mid-write.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

from .config import Config
from .context import OperationContext

T = TypeVar("T")

HANDLER_NAME = "wsc"

# LogRecord attributes that are not user-supplied ``extra`` fields
_RESERVED_RECORD_KEYS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    )
)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(config: Config) -> None:
    """Install the root handler once; JSON when audit logging is enabled.

    Logs go to stderr so command output on stdout stays machine-readable.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.log_level_value)

    if any(h.get_name() == HANDLER_NAME for h in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    if config.enable_audit_logging:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root_logger.addHandler(handler)

    # Reduce noise from Azure SDK
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def run_operation(config: Config, operation: Callable[[OperationContext], Awaitable[T]]) -> T:
    """Run one lifecycle operation to completion under a fresh context."""

    async def _run() -> T:
        ctx = OperationContext(timeout_seconds=config.operation_timeout_seconds)
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, ctx.cancel)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                # Signal handlers are unavailable off the main thread
                break

        try:
            return await operation(ctx)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    return asyncio.run(_run())
