"""
Jogger - request-scoped, span-based structured logging.

This package provides:
- An immutable context carrier for request and span identity
- Spans that time an operation, collect tags, and log one record on finish
- A logging facade that enriches records with the identity in a carrier
- Environment-based configuration on top of structlog

Usage:
    from jogger import BACKGROUND, info, span_scope, with_request_id

    ctx = with_request_id(BACKGROUND, request_id)

    with span_scope(ctx, "usecase.create_order") as (span, ctx):
        span.set_tag("items", len(order.items))
        info(ctx, "order validated")
        repo.save(ctx, order)

    # INFO span finished successfully  span=usecase.create_order spanID=... requestID=... items=3 duration=0.012
"""

from jogger.config import active_settings, configure_logging, get_base_logger, is_configured
from jogger.context import (
    ABSENT,
    BACKGROUND,
    Carrier,
    ContextKey,
    current_carrier,
    lookup,
    use_carrier,
    with_logger,
    with_request_id,
    with_span_id,
)
from jogger.logger import error, from_context, info, warn
from jogger.settings import JoggerSettings, get_settings
from jogger.span import ErrorRef, Span, current_span, span_scope, start_span, traced

__all__ = [
    # Configuration
    "JoggerSettings",
    "get_settings",
    "configure_logging",
    "get_base_logger",
    "active_settings",
    "is_configured",
    # Context
    "Carrier",
    "ContextKey",
    "BACKGROUND",
    "ABSENT",
    "lookup",
    "with_request_id",
    "with_span_id",
    "with_logger",
    "current_carrier",
    "use_carrier",
    # Logging
    "from_context",
    "info",
    "warn",
    "error",
    # Spans
    "Span",
    "ErrorRef",
    "start_span",
    "span_scope",
    "traced",
    "current_span",
]
