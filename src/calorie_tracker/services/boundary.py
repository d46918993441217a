"""Helpers that turn collaborator failures into degraded results."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from calorie_tracker.domain.results import ErrorKind, Result

T = TypeVar("T")

_logger = logging.getLogger(__name__)


def guard(
    call: Callable[[], T], *, default: T, kind: ErrorKind, action: str
) -> Result[T]:
    """Run a synchronous collaborator call, degrading to default on failure."""
    try:
        return Result.success(call())
    except Exception as exc:
        return _degrade(exc, default=default, kind=kind, action=action)


async def guard_async(
    call: Callable[[], Awaitable[T]], *, default: T, kind: ErrorKind, action: str
) -> Result[T]:
    """Await a collaborator call, degrading to default on failure."""
    try:
        return Result.success(await call())
    except Exception as exc:
        return _degrade(exc, default=default, kind=kind, action=action)


def status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _degrade(
    exc: Exception, *, default: T, kind: ErrorKind, action: str
) -> Result[T]:
    _logger.warning(
        "%s failed (kind=%s, status=%s): %s",
        action,
        kind.value,
        status_code_from_exception(exc),
        exc,
    )
    return Result.failure(kind, default, detail=f"{action}: {exc}")
