"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cache_entry import CacheEntryEntity
from .chat import ChatReply, ChatTurn, Completion
from .identity import ANONYMOUS, AnonymousIdentity, AuthenticatedIdentity, Identity

__all__ = [
    "CacheEntryEntity",
    "ChatTurn",
    "ChatReply",
    "Completion",
    "Identity",
    "AuthenticatedIdentity",
    "AnonymousIdentity",
    "ANONYMOUS",
]
