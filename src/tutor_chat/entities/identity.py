"""Caller identity resolved by the auth gate."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """A caller whose bearer token was verified by the auth collaborator.

    Attributes:
        user_id: The collaborator's user id
        access_token: The verified token, forwarded so row-level security applies
    """

    user_id: str
    access_token: str = ""

    @property
    def is_authenticated(self) -> bool:
        return True


@dataclass(frozen=True)
class AnonymousIdentity:
    """A caller without a usable token: empty history, nothing persisted."""

    @property
    def is_authenticated(self) -> bool:
        return False


Identity = AuthenticatedIdentity | AnonymousIdentity

ANONYMOUS = AnonymousIdentity()
