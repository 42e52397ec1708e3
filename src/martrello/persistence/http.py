"""JSON REST client for the board service."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from martrello.persistence.base import drop_none, unwrap
from martrello.result import Err, Result

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class HttpPersistence:
    """Persistence over the board service's ``/api`` endpoints.

    Pass ``client`` to supply a preconfigured httpx.AsyncClient (tests use
    one with a MockTransport); otherwise one is created for ``base_url``.
    """

    def __init__(
        self,
        base_url: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    async def _request(self, method: str, endpoint: str, body: dict | None = None) -> Result:
        try:
            response = await self._client.request(method, endpoint, json=body)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, endpoint, exc)
            return Err(str(exc) or type(exc).__name__)
        try:
            payload = response.json()
        except ValueError:
            logger.warning("%s %s returned non-JSON (HTTP %s)", method, endpoint, response.status_code)
            return Err(f"invalid response (HTTP {response.status_code})", response.status_code)
        result = unwrap(payload, response.status_code)
        if not result.ok:
            logger.warning("%s %s rejected: %s", method, endpoint, result.reason)
        return result

    # -- boards --

    async def get_all_boards(self) -> Result:
        return await self._request("GET", "/api/boards")

    async def create_board(self, title: str, description: str = "", background: str = "") -> Result:
        body = {"title": title, "description": description, "background": background}
        return await self._request("POST", "/api/boards", body)

    async def update_board(self, id: int, **fields: Any) -> Result:
        return await self._request("PUT", f"/api/boards/{id}", drop_none(**fields))

    async def delete_board(self, id: int) -> Result:
        return await self._request("DELETE", f"/api/boards/{id}")

    # -- lists --

    async def create_list(self, board_id: int, title: str, position: int) -> Result:
        body = {"board_id": board_id, "title": title, "position": position}
        return await self._request("POST", "/api/lists", body)

    async def update_list(self, id: int, title: str | None = None, position: int | None = None) -> Result:
        return await self._request("PUT", f"/api/lists/{id}", drop_none(title=title, position=position))

    async def delete_list(self, id: int) -> Result:
        return await self._request("DELETE", f"/api/lists/{id}")

    # -- cards --

    async def create_card(self, list_id: int, title: str, description: str, position: int) -> Result:
        body = {"list_id": list_id, "title": title, "description": description, "position": position}
        return await self._request("POST", "/api/cards", body)

    async def update_card(
        self,
        id: int,
        title: str | None = None,
        description: str | None = None,
        position: int | None = None,
        list_id: int | None = None,
    ) -> Result:
        body = drop_none(title=title, description=description, position=position, list_id=list_id)
        return await self._request("PUT", f"/api/cards/{id}", body)

    async def move_card(self, id: int, list_id: int, position: int) -> Result:
        return await self._request("PUT", f"/api/cards/{id}/move", {"list_id": list_id, "position": position})

    async def delete_card(self, id: int) -> Result:
        return await self._request("DELETE", f"/api/cards/{id}")

    async def close(self) -> None:
        await self._client.aclose()
