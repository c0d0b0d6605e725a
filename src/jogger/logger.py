"""
Logger resolution and the "log now" facade.

``from_context()`` is the one place where identity bound in a carrier turns
into log fields. ``info``/``warn``/``error`` resolve a logger that way and
emit a single record, for call sites that are not wrapping an operation in a
span.

Usage:
    ctx = with_request_id(BACKGROUND, "r1")
    info(ctx, "cache miss", key="user:7")
    # ... [info] cache miss  requestID=r1 key=user:7
"""

from __future__ import annotations

from typing import Any

from jogger.config import get_base_logger
from jogger.context import Carrier

# Field names identity is rendered under
REQUEST_ID_FIELD = "requestID"
SPAN_ID_FIELD = "spanID"
SPAN_NAME_FIELD = "span"

# Keys the renderer writes itself
RENDERER_FIELDS = frozenset({"event", "level", "logger", "timestamp"})
IDENTITY_FIELDS = frozenset({REQUEST_ID_FIELD, SPAN_ID_FIELD, SPAN_NAME_FIELD})


def from_context(carrier: Carrier) -> Any:
    """
    Logger bound with the request and span identity found in carrier.

    A logger bound under ``currentLogger`` replaces the base logger. The span
    ID is the one from the most recent start_span() on this chain, rendered as
    ``spanID`` (the name span records use) so facade logs and span records
    correlate on the same field. Calling this has no side effects.
    """
    fields: dict[str, Any] = {}

    request_id = carrier.request_id
    if request_id is not None:
        fields[REQUEST_ID_FIELD] = request_id

    span_id = carrier.span_id
    if span_id is not None:
        fields[SPAN_ID_FIELD] = span_id

    base = carrier.logger_override
    if base is None:
        base = get_base_logger()
    return base.bind(**fields)


def prefix_reserved(fields: dict[str, Any], reserved: frozenset[str], prefix: str) -> dict[str, Any]:
    """Copy of fields with reserved keys renamed to prefix + key."""
    return {(prefix + key if key in reserved else key): value for key, value in fields.items()}


def emit(logger: Any, level: str, event: str, fields: dict[str, Any] | None = None) -> None:
    """
    Write one record at level ("info", "warning" or "error").

    Fields named like a key the renderer owns (event, level, ...) are written
    as ``field.<name>``. Failures while rendering or writing are dropped so
    logging never aborts the operation it reports on.
    """
    try:
        kwargs = prefix_reserved(fields or {}, RENDERER_FIELDS, "field.")
        getattr(logger, level)(event, **kwargs)
    except Exception:  # noqa: BLE001
        pass


def _log(carrier: Carrier, level: str, msg: str, fields: dict[str, Any]) -> None:
    try:
        logger = from_context(carrier)
    except Exception:  # noqa: BLE001
        return
    # Identity bound from the carrier wins over caller fields of the same name
    emit(logger, level, msg, prefix_reserved(fields, IDENTITY_FIELDS, "field."))


def info(carrier: Carrier, msg: str, **fields: Any) -> None:
    _log(carrier, "info", msg, fields)


def warn(carrier: Carrier, msg: str, **fields: Any) -> None:
    _log(carrier, "warning", msg, fields)


def error(carrier: Carrier, msg: str, **fields: Any) -> None:
    _log(carrier, "error", msg, fields)
