"""Result values for collaborator calls that degrade instead of failing."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Category of a collaborator failure."""

    NETWORK = "network"
    PERSISTENCE = "persistence"
    NOT_FOUND = "not_found"
    SENSOR = "sensor"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Value of a collaborator call plus the failure that degraded it, if any.

    A failed result still carries a usable value (an empty list, zero, None),
    so callers can render partial data while telling "empty" apart from
    "failed".
    """

    value: T
    error: ErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        """Return True when the call succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        """Wrap a successful value."""
        return cls(value=value)

    @classmethod
    def failure(
        cls, kind: ErrorKind, default: T, detail: str | None = None
    ) -> "Result[T]":
        """Wrap a failure with the value callers should fall back to."""
        return cls(value=default, error=kind, detail=detail)
