# cacs_api/middleware.py
import logging

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cacs_api.errors import PayloadTooLarge

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_body_size`` bytes with 413.

    A declared Content-Length is checked up front. Bodies without one
    (chunked uploads) are counted while they stream in, and the route reading
    them gets a PayloadTooLarge once the ceiling is passed.
    """

    def __init__(self, app: ASGIApp, max_body_size: int):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = dict(scope["headers"]).get(b"content-length")
        if length and length.isdigit() and int(length) > self.max_body_size:
            await self._reject(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    logger.warning("Request body over %d bytes on %s", self.max_body_size, scope.get("path"))
                    raise PayloadTooLarge()
            return message

        await self.app(scope, limited_receive, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send):
        err = PayloadTooLarge()
        response = JSONResponse(status_code=err.status_code, content={"success": False, "message": err.detail})
        await response(scope, receive, send)
