"""Error taxonomy shared by services, repositories and handlers.

Handlers map these onto HTTP responses:

    ValidationError   -> 400 with a structured ``reason``
    AuthError         -> never surfaced (the auth gate degrades to anonymous)
    UpstreamError     -> never surfaced (chat replies fall back to canned text)
    PersistenceError  -> 500 with the collaborator's message
    InternalError     -> 500 with a generic message
"""


class ChatError(Exception):
    """Base class for all domain errors."""

    kind = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ChatError):
    """Bad client input."""

    kind = "validation"

    def __init__(self, message: str, reason: str, details: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.details = details


class AuthError(ChatError):
    """The auth collaborator rejected or could not verify a token."""

    kind = "auth"


class UpstreamError(ChatError):
    """The text-generation provider failed (timeout, network, provider error)."""

    kind = "upstream"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class PersistenceError(ChatError):
    """A read or write against the persistence collaborator failed."""

    kind = "persistence"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InternalError(ChatError):
    """Unexpected failure; details stay in the server log."""

    kind = "internal"
