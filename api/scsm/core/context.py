"""Request context management using contextvars.

Each request gets a request id, and handlers add the student and order they
act on as soon as they know them. Every log event emitted in the same
context carries these values without passing them around.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import UUID, uuid4


# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
student_id_var: ContextVar[str | None] = ContextVar("student_id", default=None)
order_id_var: ContextVar[str | None] = ContextVar("order_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

_OPTIONAL_VARS: dict[str, ContextVar[str | None]] = {
    "student_id": student_id_var,
    "order_id": order_id_var,
    "trace_id": trace_id_var,
}


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_student_id() -> str | None:
    return student_id_var.get()


def set_student_id(student_id: str | UUID | None) -> None:
    """Set the acting student for the current context."""
    student_id_var.set(str(student_id) if student_id is not None else None)


def get_order_id() -> str | None:
    return order_id_var.get()


def set_order_id(order_id: str | None) -> None:
    order_id_var.set(order_id)


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID taken from distributed tracing headers."""
    trace_id_var.set(trace_id)


def get_context() -> dict[str, Any]:
    """Get the non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    for name, var in _OPTIONAL_VARS.items():
        value = var.get()
        if value:
            context[name] = value

    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request so values do not leak into the next.
    """
    request_id_var.set("")
    for var in _OPTIONAL_VARS.values():
        var.set(None)


class RequestContext:
    """Context manager for a unit of work outside HTTP (scripts, jobs).

    Usage:
        with RequestContext(request_id="backfill-1", student_id=student.id):
            logger.info("legacy_user_migrated")  # carries both ids
    """

    def __init__(
        self,
        request_id: str | None = None,
        student_id: str | UUID | None = None,
        order_id: str | None = None,
    ) -> None:
        self.request_id = request_id
        self.values: dict[str, str] = {}
        if student_id is not None:
            self.values["student_id"] = str(student_id)
        if order_id is not None:
            self.values["order_id"] = order_id
        self._tokens: list[tuple[ContextVar, Token]] = []

    def __enter__(self) -> "RequestContext":
        """Enter context and set variables."""
        self._tokens.append(
            (request_id_var, request_id_var.set(self.request_id or generate_request_id()))
        )
        for name, value in self.values.items():
            var = _OPTIONAL_VARS[name]
            self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
