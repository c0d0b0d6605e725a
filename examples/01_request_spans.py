#!/usr/bin/env python3
"""Request Spans: one record per operation, correlated by request ID.

WHY SPANS
─────────
A request fans out into a handler, a use case and a few repository calls.
Logging every step by hand produces noise and loses timing. A span wraps
one operation, collects tags while it runs, and writes a single record
when it finishes: success, slow (over 1s), or error.

ARCHITECTURE
────────────
    ctx = with_request_id(BACKGROUND, rid)
          │
          ▼
    handler span ──► use-case span ──► repository span
      (spanID A)        (spanID B)        (spanID C)
          │                 │                 │
          ▼                 ▼                 ▼
    INFO span finished successfully  span=... spanID=... requestID=rid duration=...

KEY FUNCTIONS
─────────────
    Function           Purpose
    ────────────────── ───────────────────────────────────
    with_request_id    Bind the request ID to a carrier
    start_span         Start a span, get a derived carrier
    span_scope         Span that finishes on every exit path
    traced             Decorator using the ambient carrier
    info/warn/error    Log now with carrier identity

Run: python examples/01_request_spans.py
"""
import time
import uuid

from jogger import (
    BACKGROUND,
    ErrorRef,
    configure_logging,
    current_carrier,
    current_span,
    info,
    span_scope,
    start_span,
    traced,
    use_carrier,
    warn,
    with_request_id,
)


class OrderNotFound(Exception):
    pass


ORDERS = {"o-1": {"items": 3}, "o-2": {"items": 12}}


def get_order(ctx, order_id):
    """Repository call with a manual span and an error slot."""
    span, ctx = start_span(ctx, "repo.get_order")
    err = ErrorRef()
    try:
        span.set_tag("order_id", order_id)
        if order_id not in ORDERS:
            err.set(OrderNotFound(f"order {order_id} not found"))
            return None
        return ORDERS[order_id]
    finally:
        span.finish(err)


def price_order(ctx, order_id):
    """Use case with a scoped span."""
    with span_scope(ctx, "usecase.price_order") as (span, ctx):
        order = get_order(ctx, order_id)
        if order is None:
            span.record_error(OrderNotFound(order_id))
            return None
        if order["items"] > 10:
            warn(ctx, "large order, pricing may be slow", items=order["items"])
            time.sleep(1.1)
        span.set_tag("items", order["items"])
        return order["items"] * 10


@traced("handler.price", route="/orders/{id}/price")
def handle(order_id):
    info(current_carrier(), "request received", order_id=order_id)
    total = price_order(current_carrier(), order_id)
    current_span().set_tag("status", 200 if total is not None else 404)
    return total


def main():
    print("=" * 60)
    print("Request Spans")
    print("=" * 60)

    configure_logging()

    for order_id in ("o-1", "o-2", "missing"):
        print(f"\n[request] order_id={order_id}")
        token = use_carrier(with_request_id(BACKGROUND, str(uuid.uuid4())))
        try:
            handle(order_id)
        finally:
            token.restore()

    print("\n" + "=" * 60)
    print("[OK] Request Spans Complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
