"""HTTP client for the roomchat API."""

from typing import Any

import httpx


class ChatClientError(Exception):
    """Non-2xx answer from the API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ChatClient:
    """Thin async wrapper over the JSON endpoints."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._http.request(method, path, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_error:
            raise ChatClientError(
                response.status_code, body.get("error") or response.reason_phrase
            )
        return body

    # Synchronization
    async def poll(self, since: int = 0, room_id: str | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"since": since}
        if room_id:
            params["roomId"] = room_id
        return await self._request("GET", "/api/poll", params=params)

    async def send_message(self, message: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST", "/api/poll", json={"type": "message", "data": message}
        )

    async def update_presence(self, user: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/poll", json={"type": "user", "data": user})

    async def remove_user(self, user_id: str) -> dict[str, Any]:
        return await self._request("DELETE", "/api/users", params={"id": user_id})

    # Rooms
    async def list_rooms(self) -> list[dict[str, Any]]:
        body = await self._request("GET", "/api/rooms")
        return body.get("rooms", [])

    async def create_room(
        self,
        name: str,
        created_by: str,
        description: str = "",
        is_private: bool = False,
    ) -> dict[str, Any]:
        body = await self._request(
            "POST",
            "/api/rooms",
            json={
                "name": name,
                "description": description,
                "isPrivate": is_private,
                "createdBy": created_by,
            },
        )
        return body["room"]

    async def join_room(self, room_id: str, user_id: str) -> dict[str, Any]:
        return await self._request(
            "PUT", "/api/rooms", json={"roomId": room_id, "action": "join", "userId": user_id}
        )

    async def leave_room(self, room_id: str, user_id: str) -> dict[str, Any]:
        return await self._request(
            "PUT", "/api/rooms", json={"roomId": room_id, "action": "leave", "userId": user_id}
        )

    async def delete_room(self, room_id: str, user_id: str) -> dict[str, Any]:
        return await self._request(
            "DELETE", "/api/rooms", params={"id": room_id, "userId": user_id}
        )

    # Identity
    async def check_auth(self) -> dict[str, Any] | None:
        body = await self._request("GET", "/api/auth")
        return body.get("user") if body.get("loggedIn") else None

    async def register(self, username: str) -> dict[str, Any]:
        body = await self._request("POST", "/api/auth", json={"username": username})
        return body["user"]
