"""
ASGI middleware that measures every HTTP request and dispatches the completed
request to the instrumentation's metrics.

Implemented as a pure ASGI middleware rather than BaseHTTPMiddleware so the
status code and the exact number of body bytes sent can be observed from the
`send` channel, including for streaming responses.
"""
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from ..metrics.context import RequestContext

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from ..instrumentation import Instrumentation


class MetricsMiddleware:
    def __init__(self, app: ASGIApp, instrumentation: Instrumentation) -> None:
        self.app = app
        self.instrumentation = instrumentation

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path") == self.instrumentation.export_path:
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        state: dict[str, Any] = {"status": 500, "size": 0}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                state["status"] = int(message["status"])
            elif message["type"] == "http.response.body":
                state["size"] += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            finished = time.perf_counter()
            ctx = RequestContext.from_scope(scope, status=state["status"],
                                            response_size=state["size"], finished_at=finished)
            self.instrumentation.dispatch(start, ctx)


__all__ = ["MetricsMiddleware"]
