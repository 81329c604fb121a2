"""Request-scoped correlation id, visible to every log record of a call.

The middleware sets it per HTTP request; the scheduler CLI sets one per poll.
Runs started by a request inherit it because asyncio tasks copy the context.
"""

from contextvars import ContextVar, Token

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(value: str | None) -> Token[str | None]:
    return _correlation_id.set(value)


def reset_correlation_id(token: Token[str | None]) -> None:
    _correlation_id.reset(token)
