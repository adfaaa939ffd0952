"""Mixin classes for the lock card engine."""

import logging
from typing import Any

_LOGGER = logging.getLogger(__package__)


class LogMixin:
    """Log helper that prefixes every record with the owner's log id."""

    _logger: logging.Logger = _LOGGER

    @property
    def log_id(self) -> str:
        """Return the identifier used to prefix log records."""
        raise NotImplementedError

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log with level."""
        self._logger.log(level, f"[%s] {msg}", self.log_id, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Debug level log."""
        return self.log(logging.DEBUG, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Warning level log."""
        return self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Error level log."""
        return self.log(logging.ERROR, msg, *args, **kwargs)
