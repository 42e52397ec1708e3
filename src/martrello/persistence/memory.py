"""Authoritative in-process backend, optionally stored in a JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from martrello.ids import next_id
from martrello.persistence.base import drop_none
from martrello.result import Err, Ok, Result

logger = logging.getLogger(__name__)

TABLES = ("boards", "lists", "cards")


def _empty() -> dict[str, list[dict]]:
    return {table: [] for table in TABLES}


class MemoryPersistence:
    """Flat boards/lists/cards tables with numeric autoincrement ids.

    Positions are kept dense on the server side: inserting or moving a
    row to a position shifts its siblings. With ``path`` set, the tables
    are loaded from and saved to that JSON file after every mutation.
    """

    def __init__(self, path: str | Path | None = None, data: dict | None = None) -> None:
        self.path = Path(path) if path else None
        self.data = _empty()
        if data is not None:
            self.data.update({t: [dict(row) for row in data.get(t, [])] for t in TABLES})
        elif self.path is not None and self.path.exists():
            self.data.update(json.loads(self.path.read_text()))

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.data, indent=2))
        logger.debug("saved %s", self.path)

    def _find(self, table: str, id: int) -> dict | None:
        for row in self.data[table]:
            if row["id"] == id:
                return row
        return None

    def _insert(self, table: str, row: dict) -> dict:
        row["id"] = next_id(r["id"] for r in self.data[table])
        self.data[table].append(row)
        return row

    def _siblings(self, table: str, parent_key: str, parent_id: int, exclude: int | None = None) -> list[dict]:
        rows = [r for r in self.data[table] if r[parent_key] == parent_id and r["id"] != exclude]
        return sorted(rows, key=lambda r: (r["position"], r["id"]))

    @staticmethod
    def _place(siblings: list[dict], row: dict | None, position: int | None) -> None:
        """Insert row among siblings at position and renumber them all."""
        if row is not None:
            index = len(siblings) if position is None else max(0, min(position, len(siblings)))
            siblings.insert(index, row)
        for i, sibling in enumerate(siblings):
            sibling["position"] = i

    def _nested(self) -> list[dict]:
        boards = []
        for board in self.data["boards"]:
            lists = []
            for lst in self._siblings("lists", "board_id", board["id"]):
                cards = [dict(card) for card in self._siblings("cards", "list_id", lst["id"])]
                lists.append({**lst, "cards": cards})
            boards.append({**board, "lists": lists})
        return boards

    # -- boards --

    async def get_all_boards(self) -> Result:
        return Ok(self._nested())

    async def create_board(self, title: str, description: str = "", background: str = "") -> Result:
        if not title:
            return Err("title is required", 400)
        row = self._insert("boards", {"title": title, "description": description, "background": background})
        self._save()
        return Ok(dict(row))

    async def update_board(self, id: int, **fields: Any) -> Result:
        row = self._find("boards", id)
        if row is None:
            return Err("Board not found", 404)
        row.update(drop_none(**fields))
        self._save()
        return Ok(dict(row))

    async def delete_board(self, id: int) -> Result:
        if self._find("boards", id) is None:
            return Err("Board not found", 404)
        list_ids = {lst["id"] for lst in self.data["lists"] if lst["board_id"] == id}
        self.data["cards"] = [c for c in self.data["cards"] if c["list_id"] not in list_ids]
        self.data["lists"] = [lst for lst in self.data["lists"] if lst["board_id"] != id]
        self.data["boards"] = [b for b in self.data["boards"] if b["id"] != id]
        self._save()
        return Ok({"id": id})

    # -- lists --

    async def create_list(self, board_id: int, title: str, position: int) -> Result:
        if self._find("boards", board_id) is None:
            return Err("Board not found", 404)
        if not title:
            return Err("title is required", 400)
        siblings = self._siblings("lists", "board_id", board_id)
        row = self._insert("lists", {"board_id": board_id, "title": title, "position": position})
        self._place(siblings, row, position)
        self._save()
        return Ok(dict(row))

    async def update_list(self, id: int, title: str | None = None, position: int | None = None) -> Result:
        row = self._find("lists", id)
        if row is None:
            return Err("List not found", 404)
        if title is not None:
            row["title"] = title
        if position is not None:
            self._place(self._siblings("lists", "board_id", row["board_id"], exclude=id), row, position)
        self._save()
        return Ok(dict(row))

    async def delete_list(self, id: int) -> Result:
        row = self._find("lists", id)
        if row is None:
            return Err("List not found", 404)
        self.data["cards"] = [c for c in self.data["cards"] if c["list_id"] != id]
        self.data["lists"].remove(row)
        self._place(self._siblings("lists", "board_id", row["board_id"]), None, None)
        self._save()
        return Ok({"id": id})

    # -- cards --

    async def create_card(self, list_id: int, title: str, description: str, position: int) -> Result:
        if self._find("lists", list_id) is None:
            return Err("List not found", 404)
        if not title:
            return Err("title is required", 400)
        siblings = self._siblings("cards", "list_id", list_id)
        row = self._insert(
            "cards",
            {"list_id": list_id, "title": title, "description": description or "", "position": position},
        )
        self._place(siblings, row, position)
        self._save()
        return Ok(dict(row))

    async def update_card(
        self,
        id: int,
        title: str | None = None,
        description: str | None = None,
        position: int | None = None,
        list_id: int | None = None,
    ) -> Result:
        row = self._find("cards", id)
        if row is None:
            return Err("Card not found", 404)
        if list_id is not None and self._find("lists", list_id) is None:
            return Err("List not found", 404)
        row.update(drop_none(title=title, description=description))
        if position is not None or list_id is not None:
            old_list = row["list_id"]
            new_list = list_id if list_id is not None else old_list
            row["list_id"] = new_list
            target = position if position is not None else row["position"]
            self._place(self._siblings("cards", "list_id", new_list, exclude=id), row, target)
            if old_list != new_list:
                self._place(self._siblings("cards", "list_id", old_list), None, None)
        self._save()
        return Ok(dict(row))

    async def move_card(self, id: int, list_id: int, position: int) -> Result:
        return await self.update_card(id, position=position, list_id=list_id)

    async def delete_card(self, id: int) -> Result:
        row = self._find("cards", id)
        if row is None:
            return Err("Card not found", 404)
        self.data["cards"].remove(row)
        self._place(self._siblings("cards", "list_id", row["list_id"]), None, None)
        self._save()
        return Ok({"id": id})

    async def close(self) -> None:
        self._save()
