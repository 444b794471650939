"""
Operation logging and timing.

Services are wrapped explicitly at wiring time:

    service = InstrumentedService(ConfirmationService(...), layer="SERVICE")

Every public callable of the wrapped object then logs its start, its
duration and its outcome. Exceptions are re-raised unchanged.
"""

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from .exceptions import MembershipError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_SLOW_THRESHOLD_MS = 1000


def log_execution(
    name: str,
    *,
    log: logging.Logger | None = None,
    slow_threshold_ms: int = DEFAULT_SLOW_THRESHOLD_MS,
) -> Callable[[F], F]:
    """
    Decorator logging start, success and failure of an operation.

    - start: DEBUG
    - success: DEBUG, or WARNING when slower than slow_threshold_ms
    - domain error (MembershipError): WARNING
    - anything else: ERROR
    """
    log = log or logger

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log.debug("%s: start", name)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except MembershipError as exc:
                elapsed_ms = (time.perf_counter() - started) * 1000
                log.warning(
                    "%s: failed (%.1fms) %s: %s", name, elapsed_ms, type(exc).__name__, exc
                )
                raise
            except Exception as exc:
                elapsed_ms = (time.perf_counter() - started) * 1000
                log.error(
                    "%s: failed (%.1fms) %s: %s", name, elapsed_ms, type(exc).__name__, exc
                )
                raise
            elapsed_ms = (time.perf_counter() - started) * 1000
            if elapsed_ms > slow_threshold_ms:
                log.warning("%s: slow execution (%.1fms)", name, elapsed_ms)
            else:
                log.debug("%s: success (%.1fms)", name, elapsed_ms)
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


class InstrumentedService:
    """
    Composition wrapper applying log_execution to a service's public methods.

    Private attributes (leading underscore) and non-callables are passed
    through untouched.
    """

    def __init__(
        self,
        target: object,
        *,
        layer: str = "SERVICE",
        slow_threshold_ms: int = DEFAULT_SLOW_THRESHOLD_MS,
        log: logging.Logger | None = None,
    ) -> None:
        self._target = target
        self._layer = layer
        self._slow_threshold_ms = slow_threshold_ms
        self._log = log or logger

    @property
    def target(self) -> object:
        return self._target

    def __getattr__(self, attr: str) -> Any:
        value = getattr(self._target, attr)
        if attr.startswith("_") or not callable(value):
            return value
        name = f"{self._layer}: {type(self._target).__name__}.{attr}"
        return log_execution(name, log=self._log, slow_threshold_ms=self._slow_threshold_ms)(value)

    def __repr__(self) -> str:
        return f"InstrumentedService({self._target!r})"
