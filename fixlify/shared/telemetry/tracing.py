"""Span helpers for workflow runs, step dispatch and scheduler polls."""

from collections.abc import Awaitable, Callable
from functools import wraps

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from fixlify.shared.context import get_correlation_id

_tracer = trace.get_tracer("fixlify.automation")


def traced[**P, R](
    span_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Run the decorated coroutine inside a span named span_name.

    The span records the correlation id; exceptions mark it as an error
    and propagate unchanged.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with _tracer.start_as_current_span(span_name) as span:
                correlation_id = get_correlation_id()
                if correlation_id:
                    span.set_attribute("fixlify.correlation_id", correlation_id)
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Set attributes on the current span when one is recording."""
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        span.set_attribute(f"fixlify.{key}", value)
