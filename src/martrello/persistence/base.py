"""Contract for the authoritative backing store."""

from __future__ import annotations

from typing import Any, Protocol

from martrello.result import Err, Ok, Result


class Persistence(Protocol):
    """Backing store for boards, lists and cards.

    Every call returns Ok(entity) or Err(reason) and never raises for
    transport or server failures. Ids are the server's numeric ids.
    """

    async def get_all_boards(self) -> Result: ...

    async def create_board(self, title: str, description: str = "", background: str = "") -> Result: ...

    async def update_board(self, id: int, **fields: Any) -> Result: ...

    async def delete_board(self, id: int) -> Result: ...

    async def create_list(self, board_id: int, title: str, position: int) -> Result: ...

    async def update_list(self, id: int, title: str | None = None, position: int | None = None) -> Result: ...

    async def delete_list(self, id: int) -> Result: ...

    async def create_card(self, list_id: int, title: str, description: str, position: int) -> Result: ...

    async def update_card(
        self,
        id: int,
        title: str | None = None,
        description: str | None = None,
        position: int | None = None,
        list_id: int | None = None,
    ) -> Result: ...

    async def move_card(self, id: int, list_id: int, position: int) -> Result: ...

    async def delete_card(self, id: int) -> Result: ...

    async def close(self) -> None: ...


def unwrap(payload: Any, status: int | None = None) -> Result:
    """Turn a ``{success, data?, error?}`` envelope into a Result."""
    if not isinstance(payload, dict) or "success" not in payload:
        return Err("malformed response", status)
    if not payload["success"]:
        error = payload.get("error") or "request failed"
        if not isinstance(error, str):
            error = str(error)
        return Err(error, status)
    return Ok(payload.get("data"))


def drop_none(**fields: Any) -> dict:
    """Keep only the fields that were given."""
    return {k: v for k, v in fields.items() if v is not None}
