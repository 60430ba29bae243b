"""Translate domain errors into HTTPException with a structured detail."""

from fastapi import HTTPException, status

from tutor_chat.errors import ChatError, InternalError, PersistenceError, ValidationError

INTERNAL_ERROR_MESSAGE = "AI 응답 생성 중 오류가 발생했습니다."


def to_http_exception(error: Exception) -> HTTPException:
    """Map an exception onto the HTTP error contract.

    The detail is always an object with ``error`` and ``kind``; validation
    errors add ``reason`` (and ``details`` when available).
    """
    if isinstance(error, ValidationError):
        detail: dict[str, str] = {"error": error.message, "kind": error.kind, "reason": error.reason}
        if error.details:
            detail["details"] = error.details
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    if isinstance(error, PersistenceError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": error.message, "kind": error.kind},
        )

    kind = error.kind if isinstance(error, ChatError) else InternalError.kind
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": INTERNAL_ERROR_MESSAGE, "kind": kind},
    )
