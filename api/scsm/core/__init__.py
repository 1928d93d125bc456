# Core infrastructure
from scsm.core.context import (
    RequestContext,
    clear_context,
    get_context,
    get_request_id,
    set_order_id,
    set_request_id,
    set_student_id,
)
from scsm.core.logging import configure_structlog, get_logger


__all__ = [
    "RequestContext",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "set_order_id",
    "set_request_id",
    "set_student_id",
]
