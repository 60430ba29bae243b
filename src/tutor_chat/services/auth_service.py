"""Optional bearer-token authentication.

Policy: degrade, never reject. A missing, malformed or unverifiable token
resolves to the anonymous identity and the request proceeds with reduced
capability (no history, nothing persisted).
"""

import logging

from tutor_chat.entities import ANONYMOUS, AuthenticatedIdentity, Identity
from tutor_chat.errors import AuthError, PersistenceError
from tutor_chat.protocols import AuthVerifier

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    if not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class AuthGate:
    """Resolves request headers to an Identity."""

    def __init__(self, verifier: AuthVerifier) -> None:
        self._verifier = verifier

    async def authenticate(self, authorization: str | None) -> Identity:
        token = extract_bearer_token(authorization)
        if token is None:
            return ANONYMOUS

        try:
            user_id = await self._verifier.get_user_id(token)
        except (AuthError, PersistenceError) as e:
            logger.warning("Token verification failed, continuing anonymously: %s", e)
            return ANONYMOUS

        if not user_id:
            logger.info("Invalid or expired token, continuing anonymously")
            return ANONYMOUS

        return AuthenticatedIdentity(user_id=user_id, access_token=token)
