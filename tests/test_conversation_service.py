"""
Tests for identity-scoped conversation CRUD.
"""

import pytest

from tutor_chat.entities import ANONYMOUS, AuthenticatedIdentity
from tutor_chat.errors import PersistenceError, ValidationError
from tutor_chat.services import ConversationService

USER = AuthenticatedIdentity(user_id="user-1", access_token="good-token")
OTHER = AuthenticatedIdentity(user_id="user-2", access_token="other-token")


@pytest.fixture
def service(persistence):
    return ConversationService(persistence)


@pytest.mark.asyncio
async def test_create_and_list_conversations(service, persistence):
    first = await service.create_conversation(USER)
    second = await service.create_conversation(USER)
    await service.create_conversation(OTHER)

    listed = await service.list_conversations(USER)
    assert [c["id"] for c in listed] == [second["id"], first["id"]]
    assert persistence.seen_tokens[0] == "good-token"


@pytest.mark.asyncio
async def test_anonymous_gets_empty_listings(service, persistence):
    await service.create_conversation(USER)

    assert await service.list_conversations(ANONYMOUS) == []
    assert await service.list_messages(ANONYMOUS, "any") == []


@pytest.mark.asyncio
async def test_anonymous_create_is_not_persisted(service, persistence):
    conversation = await service.create_conversation(ANONYMOUS)
    message = await service.add_message(ANONYMOUS, conversation["id"], "user", "안녕")

    assert conversation["persisted"] is False
    assert message["persisted"] is False
    assert message["content"] == "안녕"
    assert persistence.conversations == []
    assert persistence.messages == []


@pytest.mark.asyncio
async def test_messages_scoped_to_user(service):
    conversation = await service.create_conversation(USER)
    await service.add_message(USER, conversation["id"], "user", "질문")
    await service.add_message(USER, conversation["id"], "assistant", "답")

    messages = await service.list_messages(USER, conversation["id"])
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert await service.list_messages(OTHER, conversation["id"]) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("conversation_id", "role", "content", "reason"),
    [
        (None, "user", "hi", "missing"),
        ("c1", None, "hi", "missing"),
        ("c1", "user", "", "missing"),
        ("c1", "system", "hi", "wrong-type"),
    ],
)
async def test_add_message_validation(service, conversation_id, role, content, reason):
    with pytest.raises(ValidationError) as exc_info:
        await service.add_message(USER, conversation_id, role, content)
    assert exc_info.value.reason == reason


@pytest.mark.asyncio
async def test_persistence_errors_propagate_from_crud(service, persistence):
    persistence.write_error = PersistenceError("permission denied for table messages")
    with pytest.raises(PersistenceError, match="permission denied"):
        await service.add_message(USER, "c1", "user", "hi")


@pytest.mark.asyncio
async def test_save_exchange_writes_both_turns(service, persistence):
    assert await service.save_exchange(USER, "c1", "질문", "답") is True
    assert [(m["role"], m["content"]) for m in persistence.messages] == [("user", "질문"), ("assistant", "답")]


@pytest.mark.asyncio
async def test_save_exchange_skips_anonymous_and_missing_id(service, persistence):
    assert await service.save_exchange(ANONYMOUS, "c1", "q", "a") is False
    assert await service.save_exchange(USER, None, "q", "a") is False
    assert persistence.messages == []


@pytest.mark.asyncio
async def test_save_exchange_swallows_persistence_error(service, persistence):
    persistence.write_error = PersistenceError("insert failed")
    assert await service.save_exchange(USER, "c1", "q", "a") is False
