"""Uniform success/failure contract for asynchronous operations.

Every store mutation goes through :meth:`AsyncOperationRunner.execute`.
Failures never escape as exceptions: they are recorded on the runner,
reported to the ``on_error`` callback and turned into a ``None`` result.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNEXPECTED_ERROR = "An unexpected error occurred"


class NotificationSink(Protocol):
    """Where user-facing success and failure messages go."""

    def notify_success(self, message: str) -> None:
        ...

    def notify_error(self, message: str) -> None:
        ...


class LoggingNotificationSink:
    """Default sink: forward notifications to the ``pylaundry`` logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("pylaundry")

    def notify_success(self, message: str) -> None:
        self._logger.info(message)

    def notify_error(self, message: str) -> None:
        self._logger.error(message)


class OperationState(BaseModel):
    """Snapshot of a runner's state."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    loading: bool = False
    error: str | None = None
    success: bool = False
    last_result: Any = None
    last_updated: datetime | None = None


class AsyncOperationRunner:
    """Run fallible coroutines and track ``{idle, running, error}`` state.

    Concurrent :meth:`execute` calls on one runner are not serialized;
    whichever finishes last decides ``loading`` and ``error``.
    """

    def __init__(
        self,
        *,
        on_success: Callable[[Any], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        name: str = "operation",
    ) -> None:
        self._on_success = on_success
        self._on_error = on_error
        self._name = name
        self.loading = False
        self.error: str | None = None
        self.success = False
        self.last_result: Any = None
        self.last_updated: datetime | None = None

    @property
    def state(self) -> OperationState:
        return OperationState(
            loading=self.loading,
            error=self.error,
            success=self.success,
            last_result=self.last_result,
            last_updated=self.last_updated,
        )

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T | None:
        """Await *operation* and return its result, or ``None`` on failure."""
        self.loading = True
        self.error = None
        self.success = False
        try:
            result = await operation()
        except Exception as exc:
            message = str(exc) or _UNEXPECTED_ERROR
            self.loading = False
            self.error = message
            self.success = False
            _logger.debug("%s failed: %s", self._name, message, exc_info=True)
            if self._on_error is not None:
                try:
                    self._on_error(exc)
                except Exception:
                    _logger.debug("%s on_error callback failed", self._name, exc_info=True)
            return None

        self.loading = False
        self.success = True
        self.last_result = result
        self.last_updated = datetime.now(UTC)
        if self._on_success is not None:
            try:
                self._on_success(result)
            except Exception:
                _logger.debug("%s on_success callback failed", self._name, exc_info=True)
        return result

    def reset(self) -> None:
        self.loading = False
        self.error = None
        self.success = False
        self.last_result = None
        self.last_updated = None
