"""Persistence collaborator protocols.

The hosted backend owns auth and row-level persistence; these protocols are
the fixed query interface the service consumes.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AuthVerifier(Protocol):
    """Verifies bearer tokens against the external auth service."""

    async def get_user_id(self, access_token: str) -> str | None:
        """Resolve a token to its user id.

        Returns:
            The user id, or None if the token is invalid or expired

        Raises:
            AuthError: If the auth service could not be reached
        """
        ...


@runtime_checkable
class ConversationStore(Protocol):
    """Conversation and message records owned by the persistence collaborator.

    Every call is scoped to one user; ``access_token`` is forwarded so the
    collaborator can enforce its own row-level policies.

    All methods raise ``PersistenceError`` on failure.
    """

    async def list_conversations(self, user_id: str, access_token: str) -> list[dict[str, Any]]:
        """Conversations owned by ``user_id``, newest first, with message counts."""
        ...

    async def create_conversation(self, user_id: str, access_token: str) -> dict[str, Any]:
        """Create and return a conversation record."""
        ...

    async def list_messages(
        self,
        conversation_id: str,
        user_id: str,
        access_token: str,
    ) -> list[dict[str, Any]]:
        """Messages of one conversation, oldest first."""
        ...

    async def create_message(
        self,
        conversation_id: str,
        user_id: str,
        role: str,
        content: str,
        access_token: str,
    ) -> dict[str, Any]:
        """Create and return a message record."""
        ...
