"""Result type returned by persistence calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful call carrying the returned entity."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed call. ``status`` is the HTTP status when one was received."""

    reason: str
    status: int | None = None

    @property
    def ok(self) -> bool:
        return False


Result = Ok[Any] | Err
