"""Conversation and message CRUD scoped to the caller's identity.

Authenticated callers are forwarded to the persistence collaborator with
every read and write filtered by their user id. Anonymous callers get empty
listings and ephemeral, non-persisted records.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from tutor_chat.entities import AuthenticatedIdentity, Identity
from tutor_chat.errors import PersistenceError, ValidationError
from tutor_chat.protocols import ConversationStore

logger = logging.getLogger(__name__)

MESSAGE_ROLES = ("user", "assistant")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConversationService:
    """Identity-filtered forwarding to the ConversationStore."""

    def __init__(self, store: ConversationStore) -> None:
        self._store = store

    async def list_conversations(self, identity: Identity) -> list[dict[str, Any]]:
        if not isinstance(identity, AuthenticatedIdentity):
            return []
        return await self._store.list_conversations(identity.user_id, identity.access_token)

    async def create_conversation(self, identity: Identity) -> dict[str, Any]:
        if not isinstance(identity, AuthenticatedIdentity):
            return {
                "id": str(uuid.uuid4()),
                "user_id": None,
                "created_at": _utc_now(),
                "persisted": False,
            }
        return await self._store.create_conversation(identity.user_id, identity.access_token)

    async def list_messages(self, identity: Identity, conversation_id: str) -> list[dict[str, Any]]:
        if not isinstance(identity, AuthenticatedIdentity):
            return []
        return await self._store.list_messages(conversation_id, identity.user_id, identity.access_token)

    async def add_message(
        self,
        identity: Identity,
        conversation_id: str | None,
        role: str | None,
        content: str | None,
    ) -> dict[str, Any]:
        """Create one message record.

        Raises:
            ValidationError: If a field is missing or the role is unknown
            PersistenceError: If the collaborator rejects the write
        """
        if not conversation_id or not role or not content:
            raise ValidationError(
                "conversation_id, role, and content are required",
                reason="missing",
            )
        if role not in MESSAGE_ROLES:
            raise ValidationError(
                "role must be 'user' or 'assistant'",
                reason="wrong-type",
            )

        if not isinstance(identity, AuthenticatedIdentity):
            return {
                "id": str(uuid.uuid4()),
                "conversation_id": conversation_id,
                "user_id": None,
                "role": role,
                "content": content,
                "created_at": _utc_now(),
                "persisted": False,
            }

        return await self._store.create_message(
            conversation_id,
            identity.user_id,
            role,
            content,
            identity.access_token,
        )

    async def save_exchange(
        self,
        identity: Identity,
        conversation_id: str | None,
        user_text: str,
        reply_text: str,
    ) -> bool:
        """Persist a user message and its reply, best effort.

        Failures are logged and never propagated: the caller has already
        answered the user.

        Returns:
            True if both messages were written
        """
        if not conversation_id or not isinstance(identity, AuthenticatedIdentity):
            return False
        try:
            for role, content in (("user", user_text), ("assistant", reply_text)):
                await self._store.create_message(
                    conversation_id,
                    identity.user_id,
                    role,
                    content,
                    identity.access_token,
                )
        except PersistenceError as e:
            logger.warning("Failed to save chat exchange to %s: %s", conversation_id, e)
            return False
        return True
