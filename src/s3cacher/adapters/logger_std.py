"""Standard logging adapter."""

import logging
import sys
from typing import Any

from ..ports.logger import LoggerPort

LOGGER_NAME = "s3cacher"


class StdLoggerAdapter(LoggerPort):
    """Standard logging implementation of LoggerPort.

    Structured fields are appended to the message as sorted ``key=value``
    pairs, e.g. ``Starting save operation bucket=ci key=deps-1f2e``.
    """

    def __init__(self, name: str = LOGGER_NAME, level: str = "INFO"):
        """Initialize logger."""
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, kwargs)

    def log_operation(
        self,
        op: str,
        key: str,
        bucket: str,
        sizes: dict[str, int],
        durations: dict[str, float],
        **extra: Any,
    ) -> None:
        """Log a completed cache operation."""
        fields: dict[str, Any] = {"op": op, "key": key, "bucket": bucket}
        fields.update({f"size_{name}": value for name, value in sizes.items()})
        fields.update({f"duration_{name}": round(value, 3) for name, value in durations.items()})
        fields.update(extra)
        self._log(logging.INFO, "Operation completed", fields)

    def _log(self, level: int, message: str, fields: dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if fields:
            rendered = " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
            message = f"{message} {rendered}"
        self.logger.log(level, message)
