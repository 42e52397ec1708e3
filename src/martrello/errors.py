"""Error taxonomy for martrello."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from martrello.controller import Move


class MartrelloError(Exception):
    """Base class for all martrello errors."""


class NotFound(MartrelloError):
    """A referenced board, list or card id does not exist."""

    def __init__(self, kind: str, id_: str) -> None:
        super().__init__(f"{kind} '{id_}' not found")
        self.kind = kind
        self.id = id_


class ValidationError(MartrelloError):
    """Input rejected before any mutation took place."""


class PersistenceFailure(MartrelloError):
    """A confirmation call failed, was rejected or timed out.

    Carries the move that failed (if any) so callers can offer a retry.
    """

    def __init__(self, reason: str, move: Move | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.move = move


class InvariantViolation(MartrelloError):
    """Positions are not dense after an operation. Always a bug."""
