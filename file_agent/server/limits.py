from __future__ import annotations

import logging

from starlette.exceptions import HTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from agent_core.filesystem.errors import PayloadTooLarge
from agent_core.logging.audit import audit_event

from .responses import error_response


class UploadSizeLimit:
    """Caps the request body of ``POST`` requests to ``paths``.

    A declared ``Content-Length`` over the limit is answered with 413 before
    any body is read. Chunked bodies are counted as they arrive and the read
    is aborted with an ``HTTPException(413)`` once the total passes the
    limit, so the multipart parser never spools more than one extra chunk.
    """

    def __init__(self, app: ASGIApp, max_bytes: int, paths: tuple[str, ...] = ("/upload",)) -> None:
        self.app = app
        self.max_bytes = max_bytes
        self.paths = paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope.get("method") != "POST"
            or scope.get("path") not in self.paths
            or self.max_bytes <= 0
        ):
            await self.app(scope, receive, send)
            return

        declared = _declared_length(scope)
        if declared is not None and declared > self.max_bytes:
            audit_event("upload.rejected", level=logging.WARNING, reason="too_large", declared=declared)
            response = error_response(str(PayloadTooLarge()), 413)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    audit_event("upload.rejected", level=logging.WARNING, reason="too_large", received=received)
                    raise HTTPException(status_code=413, detail=str(PayloadTooLarge()))
            return message

        await self.app(scope, limited_receive, send)


def _declared_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", []):
        if name.lower() == b"content-length":
            raw = value.decode("latin-1").strip()
            return int(raw) if raw.isdigit() else None
    return None
