"""ASGI middleware for request timing logs."""

import logging
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("tutor_chat.access")


class RequestTimingMiddleware:
    """Log method, path, status and duration of every HTTP request.

    Written against raw ASGI so streamed bodies pass through untouched;
    the duration covers the whole response, including the last stream event.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000)
            logger.info("%s %s - %s - %dms", scope["method"], scope["path"], status_code, duration_ms)
