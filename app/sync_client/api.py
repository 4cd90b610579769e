"""
REST client for the chat API.

Wraps every route under /api/ with one method. Responses are returned as
decoded JSON; any non-2xx response raises ChatApiError carrying the HTTP
status and the server's {"message": ...} text.

Usage:
    with ChatApiClient("http://localhost:8000") as api:
        api.login("alice@example.com", "Str0ng-Pass!23")
        conversation = api.create_conversation([bob_id])
        api.send_message(conversation["id"], content="hi")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from typing import Any, BinaryIO

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class ChatApiError(Exception):
    """Non-2xx response from the chat API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class ChatApiClient:
    """
    Synchronous client for the chat REST API.

    Attributes:
        token: Bearer token sent on every request (set by register/login)
        user: The user returned by the last register/login
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self.token = token
        self.user: dict | None = None
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/api",
            timeout=timeout,
            transport=transport,
        )

    # =========================================================================
    # Plumbing
    # =========================================================================

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ChatApiClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self._client.request(method, path, headers=self._headers(), **kwargs)

        if response.is_error:
            message = response.text
            try:
                message = response.json().get("message", message)
            except (ValueError, AttributeError):
                pass
            logger.debug(f"{method} {path} failed ({response.status_code}): {message}")
            raise ChatApiError(response.status_code, message)

        if not response.content:
            return None
        return response.json()

    def _store_session(self, data: dict) -> dict:
        self.token = data["token"]
        self.user = data["user"]
        return data

    # =========================================================================
    # Auth & users
    # =========================================================================

    def register(self, username: str, email: str, password: str) -> dict:
        data = self._request(
            "POST",
            "/auth/register/",
            json={"username": username, "email": email, "password": password},
        )
        return self._store_session(data)

    def login(self, email: str, password: str) -> dict:
        data = self._request(
            "POST", "/auth/login/", json={"email": email, "password": password}
        )
        return self._store_session(data)

    def me(self) -> dict:
        return self._request("GET", "/auth/me/")

    def update_profile(self, username: str | None = None, bio: str | None = None) -> dict:
        payload = {
            key: value
            for key, value in {"username": username, "bio": bio}.items()
            if value is not None
        }
        return self._request("PUT", "/auth/profile/", json=payload)

    def upload_avatar(self, file: BinaryIO, filename: str) -> dict:
        return self._request("POST", "/auth/avatar/", files={"avatar": (filename, file)})

    def search_users(self, query: str) -> list[dict]:
        return self._request("GET", "/users/search/", params={"q": query})

    def get_user(self, user_id: int) -> dict:
        return self._request("GET", f"/users/{user_id}/")

    # =========================================================================
    # Conversations
    # =========================================================================

    def list_conversations(self) -> list[dict]:
        return self._request("GET", "/conversations/")

    def get_conversation(self, conversation_id: int) -> dict:
        return self._request("GET", f"/conversations/{conversation_id}/")

    def create_conversation(
        self,
        participant_ids: list[int],
        is_group: bool = False,
        name: str = "",
    ) -> dict:
        return self._request(
            "POST",
            "/conversations/",
            json={"participant_ids": participant_ids, "is_group": is_group, "name": name},
        )

    def update_conversation(
        self,
        conversation_id: int,
        name: str | None = None,
        group_image: str | None = None,
    ) -> dict:
        payload = {
            key: value
            for key, value in {"name": name, "group_image": group_image}.items()
            if value is not None
        }
        return self._request("PUT", f"/conversations/{conversation_id}/", json=payload)

    def delete_conversation(self, conversation_id: int) -> dict:
        return self._request("DELETE", f"/conversations/{conversation_id}/")

    def add_participant(self, conversation_id: int, user_id: int) -> dict:
        return self._request(
            "POST", f"/conversations/{conversation_id}/users/", json={"user_id": user_id}
        )

    def remove_participant(self, conversation_id: int, user_id: int) -> dict:
        return self._request("DELETE", f"/conversations/{conversation_id}/users/{user_id}/")

    # =========================================================================
    # Messages
    # =========================================================================

    def list_messages(self, conversation_id: int) -> list[dict]:
        """Messages oldest first; marks them read for the current user."""
        return self._request("GET", f"/messages/{conversation_id}/")

    def send_message(self, conversation_id: int, content: str = "", image: str = "") -> dict:
        return self._request(
            "POST",
            "/messages/",
            json={"conversation_id": conversation_id, "content": content, "image": image},
        )

    def delete_message(self, message_id: int) -> dict:
        return self._request("DELETE", f"/messages/{message_id}/")

    def upload_image(self, file: BinaryIO, filename: str) -> str:
        """Upload a message image and return its URL."""
        data = self._request("POST", "/messages/upload/", files={"image": (filename, file)})
        return data["image_url"]
