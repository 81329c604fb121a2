"""Request and correlation ID middleware.

Forwards or generates X-Request-ID and X-Correlation-ID, stores both on the
ASGI scope state and echoes them on the response. The correlation ID falls
back to the request ID so that a trigger call and the runs it starts can be
tied together in logs; it is also published to the logging context.
Raw ASGI, so streaming responses are untouched.
"""

import re
import uuid
from collections.abc import Callable

from fixlify.shared.context import reset_correlation_id, set_correlation_id

ID_MAX_LENGTH = 64
_SAFE_ID = re.compile(r"^[A-Za-z0-9_.:-]{1,%d}$" % ID_MAX_LENGTH)


def _header(scope: dict, name: str) -> str | None:
    wanted = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            return value.decode("utf-8", errors="replace").strip()
    return None


def safe_id(raw: str | None) -> str | None:
    """Return raw when it is a short token safe to log, else None."""
    if raw and _SAFE_ID.match(raw):
        return raw
    return None


def RequestContextMiddleware(
    app: Callable,
    request_id_header: str = "X-Request-ID",
    correlation_id_header: str = "X-Correlation-ID",
) -> Callable:
    """Wrap app so every HTTP response carries request and correlation IDs."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = safe_id(_header(scope, request_id_header)) or str(uuid.uuid4())
        correlation_id = safe_id(_header(scope, correlation_id_header)) or request_id
        state = scope.setdefault("state", {})
        state["request_id"] = request_id
        state["correlation_id"] = correlation_id

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((request_id_header.lower().encode(), request_id.encode()))
                headers.append((correlation_id_header.lower().encode(), correlation_id.encode()))
                message["headers"] = headers
            await send(message)

        token = set_correlation_id(correlation_id)
        try:
            await app(scope, receive, send_wrapper)
        finally:
            reset_correlation_id(token)

    return asgi_app
