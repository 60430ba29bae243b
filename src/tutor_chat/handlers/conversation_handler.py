"""HTTP handlers for conversation and message records."""

import logging

from tutor_chat.dto import (
    ConversationListResponse,
    ConversationResponse,
    CreateMessageRequest,
    MessageListResponse,
    MessageResponse,
)
from tutor_chat.entities import Identity
from tutor_chat.errors import ChatError
from tutor_chat.services import ConversationService

from .http_errors import to_http_exception

logger = logging.getLogger(__name__)


class ConversationHandler:
    """HTTP handlers forwarding CRUD to ConversationService.

    Collaborator failures become 500 responses carrying the collaborator's
    message; missing fields become 400.
    """

    def __init__(self, conversation_service: ConversationService) -> None:
        self._conversations = conversation_service

    async def list_conversations(self, identity: Identity) -> ConversationListResponse:
        try:
            conversations = await self._conversations.list_conversations(identity)
        except ChatError as e:
            logger.error("Listing conversations failed: %s", e)
            raise to_http_exception(e) from e
        return ConversationListResponse(conversations=conversations)

    async def create_conversation(self, identity: Identity) -> ConversationResponse:
        try:
            conversation = await self._conversations.create_conversation(identity)
        except ChatError as e:
            logger.error("Creating conversation failed: %s", e)
            raise to_http_exception(e) from e
        return ConversationResponse(conversation=conversation)

    async def list_messages(self, identity: Identity, conversation_id: str) -> MessageListResponse:
        try:
            messages = await self._conversations.list_messages(identity, conversation_id)
        except ChatError as e:
            logger.error("Listing messages of %s failed: %s", conversation_id, e)
            raise to_http_exception(e) from e
        return MessageListResponse(messages=messages)

    async def create_message(self, identity: Identity, request: CreateMessageRequest) -> MessageResponse:
        try:
            message = await self._conversations.add_message(
                identity,
                request.conversation_id,
                request.role,
                request.content,
            )
        except ChatError as e:
            logger.error("Creating message failed: %s", e)
            raise to_http_exception(e) from e
        return MessageResponse(message=message)
