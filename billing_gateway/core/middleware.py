# billing_gateway/core/middleware.py
from __future__ import annotations
from uuid import uuid4
import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class RequestContextMiddleware:
    """
    ASGI middleware that:
      - Binds trace_id (X-Request-Id or a fresh one) and Idempotency-Key into
        structlog contextvars for the duration of the request.
      - Stores both on scope["state"] so routes can build a ProviderContext.
      - Echoes X-Request-Id on the response.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        trace_id = self._header(scope, b"x-request-id") or uuid4().hex
        idem_key = self._header(scope, b"idempotency-key")

        state = scope.setdefault("state", {})
        state["trace_id"] = trace_id
        state["idempotency_key"] = idem_key

        async def send_wrapper(message: Message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers") or [])
                headers.append((b"x-request-id", trace_id.encode()))
                message = {**message, "headers": headers}
            await send(message)

        with structlog.contextvars.bound_contextvars(
            trace_id=trace_id,
            path=scope.get("path"),
            method=scope.get("method"),
        ):
            await self.app(scope, receive, send_wrapper)

    @staticmethod
    def _header(scope: Scope, name: bytes) -> str | None:
        headers = dict((k.lower(), v) for k, v in (scope.get("headers") or []))
        v = headers.get(name)
        return v.decode() if v else None
