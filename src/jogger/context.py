"""
Context carrier for request and span identity.

A ``Carrier`` is an immutable, chained key/value container that calling code
threads through its call graph (usually as the first argument). Deriving a
carrier never changes the one it came from; lookups walk from the newest
binding back to the root, so a derived carrier shadows but never removes
what its ancestors bound.

Well-known keys (``ContextKey``) are part of the public contract: upstream
middleware may bind ``requestID`` or ``currentLogger`` before handing the
carrier to instrumented code.

Usage:
    ctx = with_request_id(BACKGROUND, "req-42")
    lookup(ctx, ContextKey.REQUEST_ID)      # "req-42"
    lookup(BACKGROUND, ContextKey.REQUEST_ID)  # ABSENT

For code that cannot thread a carrier explicitly (decorated functions,
framework callbacks), ``use_carrier()`` binds one to the running thread or
asyncio task via contextvars and ``current_carrier()`` reads it back.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ContextKey(str, Enum):
    """Keys the logging core reads from a carrier."""

    REQUEST_ID = "requestID"
    CURRENT_SPAN_ID = "currentSpanID"
    CURRENT_LOGGER = "currentLogger"


class _Absent:
    """Sentinel returned by lookup() for unbound keys."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Any = _Absent()


@dataclass(frozen=True, eq=False)
class Carrier:
    """
    One link in an immutable chain of bindings.

    The root carrier binds nothing. Each derived carrier holds exactly one
    binding plus a reference to its parent.
    """

    parent: Carrier | None = None
    key: Hashable = ABSENT
    value: Any = None

    def with_value(self, key: Hashable, value: Any) -> Carrier:
        """Return a new carrier binding key to value on top of this one."""
        return Carrier(parent=self, key=key, value=value)

    def _chain(self) -> Iterator[Carrier]:
        node: Carrier | None = self
        while node is not None:
            if node.key is not ABSENT:
                yield node
            node = node.parent

    def lookup(self, key: Hashable) -> Any:
        """Most recent value bound for key, or ABSENT."""
        for node in self._chain():
            if node.key == key:
                return node.value
        return ABSENT

    def get(self, key: Hashable, default: Any = None) -> Any:
        value = self.lookup(key)
        return default if value is ABSENT else value

    def __contains__(self, key: Hashable) -> bool:
        return self.lookup(key) is not ABSENT

    @property
    def request_id(self) -> str | None:
        return self.get(ContextKey.REQUEST_ID)

    @property
    def span_id(self) -> str | None:
        return self.get(ContextKey.CURRENT_SPAN_ID)

    @property
    def logger_override(self) -> Any | None:
        return self.get(ContextKey.CURRENT_LOGGER)

    def __repr__(self) -> str:
        bound = ", ".join(f"{_key_name(n.key)}={n.value!r}" for n in reversed(list(self._chain())))
        return f"Carrier({bound})"


def _key_name(key: Hashable) -> str:
    return key.value if isinstance(key, ContextKey) else str(key)


# Root carrier; binds nothing
BACKGROUND = Carrier()


def lookup(carrier: Carrier, key: Hashable) -> Any:
    """Value bound for key in carrier's chain, or ABSENT."""
    return carrier.lookup(key)


def with_request_id(carrier: Carrier, request_id: str) -> Carrier:
    """Bind the request ID. Any string is accepted, including ""."""
    return carrier.with_value(ContextKey.REQUEST_ID, request_id)


def with_span_id(carrier: Carrier, span_id: str) -> Carrier:
    return carrier.with_value(ContextKey.CURRENT_SPAN_ID, span_id)


def with_logger(carrier: Carrier, logger: Any) -> Carrier:
    """Bind a logger that from_context() uses instead of the base logger."""
    return carrier.with_value(ContextKey.CURRENT_LOGGER, logger)


# =============================================================================
# Ambient carrier
# =============================================================================

_current: ContextVar[Carrier] = ContextVar("jogger_carrier", default=BACKGROUND)


class CarrierToken:
    """Token for restoring the ambient carrier after a scoped operation."""

    def __init__(self, token):
        self._token = token

    def restore(self) -> None:
        """Restore the previous carrier."""
        _current.reset(self._token)


def current_carrier() -> Carrier:
    """Carrier bound to the running thread or task (BACKGROUND if none)."""
    return _current.get()


def use_carrier(carrier: Carrier) -> CarrierToken:
    """
    Bind carrier as the ambient carrier, returning a token to restore later.

    Usage:
        token = use_carrier(with_request_id(BACKGROUND, rid))
        try:
            handle()
        finally:
            token.restore()
    """
    return CarrierToken(_current.set(carrier))
