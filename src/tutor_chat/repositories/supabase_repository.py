"""Supabase implementation of AuthVerifier and ConversationStore.

Uses the project's REST surfaces directly over httpx:

- GoTrue: ``GET /auth/v1/user`` resolves a bearer token to a user
- PostgREST: ``/rest/v1/conversations`` and ``/rest/v1/messages``

Requests carry the project ``apikey`` plus the caller's bearer token, so the
project's row-level security policies apply on top of the explicit
``user_id`` filters.
"""

import logging
from typing import Any

import httpx

from tutor_chat.config import Settings, settings
from tutor_chat.errors import AuthError, PersistenceError

logger = logging.getLogger(__name__)


class SupabaseRepository:
    """Supabase-backed persistence collaborator.

    This class satisfies both the AuthVerifier and ConversationStore
    protocols through structural typing.
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            url: Project URL. Defaults to settings.supabase_url.
            anon_key: Project anon key. Defaults to settings.supabase_anon_key.
            timeout: Request timeout in seconds. Defaults to settings.supabase_timeout.
            client: Pre-built AsyncClient (tests inject one with a mock transport).
        """
        self._url = (url or settings.supabase_url).rstrip("/")
        self._anon_key = anon_key or settings.supabase_anon_key
        self._timeout = timeout or settings.supabase_timeout
        self._client = client

    @classmethod
    def create(cls, config: Settings | None = None) -> "SupabaseRepository":
        """Factory method to create SupabaseRepository from settings."""
        config = config or settings
        return cls(
            url=config.supabase_url,
            anon_key=config.supabase_anon_key,
            timeout=config.supabase_timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self._anon_key,
            "authorization": f"Bearer {access_token or self._anon_key}",
            "content-type": "application/json",
        }

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for field in ("message", "msg", "error_description", "error"):
                if isinstance(body.get(field), str) and body[field]:
                    return body[field]
        return f"Supabase returned HTTP {response.status_code}"

    async def _request(
        self,
        method: str,
        path: str,
        access_token: str,
        params: dict[str, str] | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = self._headers(access_token)
        if prefer:
            headers["prefer"] = prefer

        try:
            response = await self.client.request(
                method,
                f"{self._url}/rest/v1/{path}",
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"Supabase request failed: {e}") from e

        if response.is_error:
            raise PersistenceError(self._error_message(response), status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError("Supabase returned an invalid JSON body") from e

    @staticmethod
    def _single(rows: Any, table: str) -> dict[str, Any]:
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            return rows[0]
        raise PersistenceError(f"Supabase did not return the inserted {table} row")

    async def get_user_id(self, access_token: str) -> str | None:
        """Resolve a bearer token through GoTrue.

        Returns:
            The user id, or None if the token is rejected

        Raises:
            AuthError: If GoTrue could not be reached or answered unexpectedly
        """
        try:
            response = await self.client.get(
                f"{self._url}/auth/v1/user",
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Auth service unreachable: {e}") from e

        if response.status_code in (401, 403, 404):
            return None
        if response.is_error:
            raise AuthError(self._error_message(response))

        try:
            user = response.json()
        except ValueError as e:
            raise AuthError("Auth service returned an invalid JSON body") from e

        user_id = user.get("id") if isinstance(user, dict) else None
        return str(user_id) if user_id else None

    async def list_conversations(self, user_id: str, access_token: str) -> list[dict[str, Any]]:
        rows = await self._request(
            "GET",
            "conversations",
            access_token,
            params={
                "select": "*,messages(count)",
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
            },
        )
        conversations = []
        for row in rows or []:
            counts = row.pop("messages", None) or []
            row["message_count"] = counts[0].get("count", 0) if counts else 0
            conversations.append(row)
        return conversations

    async def create_conversation(self, user_id: str, access_token: str) -> dict[str, Any]:
        rows = await self._request(
            "POST",
            "conversations",
            access_token,
            json_body=[{"user_id": user_id}],
            prefer="return=representation",
        )
        return self._single(rows, "conversations")

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        access_token: str,
    ) -> list[dict[str, Any]]:
        rows = await self._request(
            "GET",
            "messages",
            access_token,
            params={
                "select": "*",
                "conversation_id": f"eq.{conversation_id}",
                "user_id": f"eq.{user_id}",
                "order": "created_at.asc",
            },
        )
        return list(rows or [])

    async def create_message(
        self,
        conversation_id: str,
        user_id: str,
        role: str,
        content: str,
        access_token: str,
    ) -> dict[str, Any]:
        rows = await self._request(
            "POST",
            "messages",
            access_token,
            json_body=[
                {
                    "conversation_id": conversation_id,
                    "user_id": user_id,
                    "role": role,
                    "content": content,
                }
            ],
            prefer="return=representation",
        )
        return self._single(rows, "messages")

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
