"""
Spans: timed, tagged units of work that log once when they finish.

Provides:
- Manual: span, ctx = start_span(ctx, "repo.get_user"); ...; span.finish(err)
- Context manager: with span_scope(ctx, "usecase.register") as (span, ctx):
- Decorator: @traced("handler.create_order")

Design:
- A span logs nothing when it starts and exactly one record when it finishes
- The record carries span, spanID, requestID, every tag, and duration
- Outcome: error if an error was passed, else slow if duration exceeds the
  slow threshold (1s by default), else success
- start_span() hands back a derived carrier; use it for nested work so child
  spans and facade logs carry the new spanID

Concurrency:
- set_tag() may be called from several threads; appends are serialized
- finish() snapshots tags under the same lock and logs outside it
"""

from __future__ import annotations

import functools
import inspect
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, TypeVar

from jogger.config import active_settings, get_base_logger
from jogger.context import Carrier, current_carrier, use_carrier, with_span_id
from jogger.logger import (
    IDENTITY_FIELDS,
    RENDERER_FIELDS,
    REQUEST_ID_FIELD,
    SPAN_ID_FIELD,
    SPAN_NAME_FIELD,
    emit,
)

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])

# Monotonic clock spans are timed with
_clock = time.perf_counter

FINISHED_WITH_ERROR = "span finished with error"
FINISHED_SLOWLY = "span finished slowly"
FINISHED_OK = "span finished successfully"

DURATION_FIELD = "duration"
ERROR_FIELD = "error"

# Tags with these names are written as tag.<name>
RESERVED_TAGS = IDENTITY_FIELDS | RENDERER_FIELDS | {DURATION_FIELD, ERROR_FIELD}


def _generate_span_id() -> str:
    return str(uuid.uuid4())


class ErrorRef:
    """
    Slot for the error a span finishes with.

    Filled while the operation runs and read when finish() actually executes,
    so it can be handed to finish() before the outcome is known.
    """

    __slots__ = ("error",)

    def __init__(self, error: BaseException | None = None):
        self.error = error

    def set(self, error: BaseException | None) -> None:
        self.error = error

    def __repr__(self) -> str:
        return f"ErrorRef({self.error!r})"


class Span:
    """One traced operation. Create with start_span()."""

    def __init__(self, name: str, span_id: str, logger: Any, slow_threshold: float = 1.0):
        self._name = name
        self._span_id = span_id
        self._logger = logger
        self._slow_threshold = slow_threshold
        self._start_time = datetime.now(UTC)
        self._started_at = _clock()
        self._ended_at: float | None = None
        self._tags: list[tuple[str, Any]] = []
        self._finished = False
        self._lock = threading.Lock()
        self.outcome = ErrorRef()

    @property
    def name(self) -> str:
        return self._name

    @property
    def span_id(self) -> str:
        return self._span_id

    @property
    def start_time(self) -> datetime:
        """Wall-clock UTC time the span started."""
        return self._start_time

    @property
    def logger(self) -> Any:
        """Logger bound with span, spanID and requestID."""
        return self._logger

    @property
    def tags(self) -> list[tuple[str, Any]]:
        with self._lock:
            return list(self._tags)

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def duration(self) -> float:
        """Seconds elapsed so far, or the final duration once finished."""
        end = self._ended_at if self._ended_at is not None else _clock()
        return end - self._started_at

    def set_tag(self, key: str, value: Any) -> None:
        """Append a tag. Repeated keys are kept, not overwritten."""
        with self._lock:
            self._tags.append((key, value))

    def record_error(self, error: BaseException | None) -> None:
        """Mark the span as failed without raising; used by the scoped finish."""
        self.outcome.set(error)

    def finish(self, error: BaseException | ErrorRef | None = None) -> bool:
        """
        Log the span's single completion record.

        Args:
            error: None, the error the operation failed with, or an ErrorRef
                whose content is read now

        Returns:
            True if a record was written, False if the span had already finished
        """
        with self._lock:
            if self._finished:
                return False
            self._finished = True
            tags = list(self._tags)

        self._ended_at = _clock()
        elapsed = self._ended_at - self._started_at

        if isinstance(error, ErrorRef):
            error = error.error

        fields = _collapse_tags(tags)
        fields[DURATION_FIELD] = elapsed

        if error is not None:
            fields[ERROR_FIELD] = str(error) or type(error).__name__
            emit(self._logger, "error", FINISHED_WITH_ERROR, fields)
        elif elapsed > self._slow_threshold:
            emit(self._logger, "warning", FINISHED_SLOWLY, fields)
        else:
            emit(self._logger, "info", FINISHED_OK, fields)
        return True

    def __enter__(self) -> Span:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            self.record_error(exc)
        self.finish(self.outcome)
        return False

    def __repr__(self) -> str:
        return f"Span(name={self._name!r}, span_id={self._span_id!r}, finished={self._finished})"


def _collapse_tags(tags: list[tuple[str, Any]]) -> dict[str, Any]:
    """
    Tags as log fields.

    A key set more than once maps to a list of its values. Keys the record
    already uses (span identity, duration, error, renderer keys) become
    tag.<key> so a tag never replaces them.
    """
    fields: dict[str, Any] = {}
    repeated: set[str] = set()
    for key, value in tags:
        if key in RESERVED_TAGS:
            key = f"tag.{key}"
        if key not in fields:
            fields[key] = value
        elif key in repeated:
            fields[key].append(value)
        else:
            fields[key] = [fields[key], value]
            repeated.add(key)
    return fields


def start_span(carrier: Carrier, name: str) -> tuple[Span, Carrier]:
    """
    Start a span named name under carrier.

    The span logs through the base logger even when carrier binds a logger
    override. An empty request ID is left off the span record. The returned
    carrier binds the new span ID; pass it to the work done inside the span.
    """
    span_id = _generate_span_id()

    fields = {SPAN_NAME_FIELD: name, SPAN_ID_FIELD: span_id}
    request_id = carrier.request_id
    if request_id:
        fields[REQUEST_ID_FIELD] = request_id

    span = Span(
        name,
        span_id,
        get_base_logger().bind(**fields),
        slow_threshold=active_settings().slow_threshold,
    )
    return span, with_span_id(carrier, span_id)


@contextmanager
def span_scope(carrier: Carrier, name: str, **tags: Any) -> Iterator[tuple[Span, Carrier]]:
    """
    Context manager that starts a span and finishes it on every exit path.

    An exception escaping the block is recorded as the span's error and
    re-raised. A handled failure can be reported with span.record_error().

    Usage:
        with span_scope(ctx, "repo.save_order", order_id=order.id) as (span, ctx):
            rows = repo.save(ctx, order)
            span.set_tag("rows", rows)
    """
    span, child = start_span(carrier, name)
    for key, value in tags.items():
        span.set_tag(key, value)
    with span:
        yield span, child


# =============================================================================
# Ambient spans
# =============================================================================

_current_span: ContextVar[Span | None] = ContextVar("jogger_span", default=None)


def current_span() -> Span | None:
    """Span opened by the innermost @traced call in this thread or task."""
    return _current_span.get()


@contextmanager
def _ambient_span(name: str, tags: dict[str, Any]) -> Iterator[Span]:
    with span_scope(current_carrier(), name, **tags) as (span, child):
        carrier_token = use_carrier(child)
        span_token = _current_span.set(span)
        try:
            yield span
        finally:
            _current_span.reset(span_token)
            carrier_token.restore()


def traced(name: str | None = None, **tags: Any) -> Callable[[F], F]:
    """
    Decorator that runs a function inside a span.

    The span starts from current_carrier() and the derived carrier is ambient
    while the function runs, so nested @traced calls and
    info(current_carrier(), ...) pick up the span ID.

    Usage:
        @traced("repo.get_user", table="users")
        def get_user(user_id):
            current_span().set_tag("user_id", user_id)
            ...

    Args:
        name: Span name (defaults to the function's qualified name)
        **tags: Tags set on every span this decorator starts

    Raises:
        TypeError: if applied to a generator or async generator function;
            the span would finish before the generator runs
    """

    def decorator(func: F) -> F:
        span_name = name or func.__qualname__

        if inspect.isgeneratorfunction(func) or inspect.isasyncgenfunction(func):
            raise TypeError(f"traced() does not support generator functions: {func.__qualname__}")

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with _ambient_span(span_name, tags):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with _ambient_span(span_name, tags):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
