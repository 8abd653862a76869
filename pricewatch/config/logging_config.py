# pricewatch/config/logging_config.py

"""Run log for the tracker and the user/item context attached to it.

:func:`setup_logging` opens ``logs/run_<timestamp>.log`` for the current
process. Everything under the ``pricewatch`` logger tree goes there at
DEBUG; the console only shows warnings, so a scheduler left running in
a terminal stays quiet unless a cycle goes wrong.

Per-user and per-item work logs through :func:`with_context`, which
prefixes every message with ``[user=...] [item=...]`` and stores the
same values on the record as ``record.context``. A whole cycle can then
be grepped by user or by item name.
"""

import logging
import sys
from collections.abc import MutableMapping
from datetime import datetime
from pathlib import Path
from typing import Any

from pricewatch.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Order of the context tags in the message prefix
_CONTEXT_KEYS: tuple[str, ...] = ("user", "item")


class ContextAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that tags messages with the user and item they concern."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any],
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = dict(self.extra or {})
        tags = " ".join(
            f"[{key}={context[key]}]"
            for key in _CONTEXT_KEYS
            if key in context
        )
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = context
        kwargs["extra"] = extra
        return (f"{tags} {msg}" if tags else msg), kwargs

    def bind(self, **context: Any) -> "ContextAdapter":
        """A new adapter carrying this context plus *context*."""
        merged = {**(self.extra or {}), **context}
        return with_context(self.logger, **merged)


def with_context(logger: logging.Logger, **context: Any) -> ContextAdapter:
    """Wrap *logger* so its messages carry ``user``/``item`` tags.

    ``None`` values are dropped, so callers can pass optional context
    without branching.
    """
    return ContextAdapter(
        logger, {k: v for k, v in context.items() if v is not None}
    )


def setup_logging() -> Path:
    """Attach the run file and console handlers to the ``pricewatch`` logger.

    Calling it again in the same process keeps the existing handlers.

    Returns:
        The path of the log file for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    root_logger = logging.getLogger("pricewatch")
    root_logger.setLevel(logging.DEBUG)
    if root_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    root_logger.info(
        "Run log opened at %s (checking every %d minutes)",
        log_file,
        Settings.CHECK_INTERVAL_MINUTES,
    )
    return log_file
