"""Per-search and per-source fields for structured logging.

A search pushes ``fetch_id``, ``query`` and ``location``; each source call
inside it adds ``source_index`` and ``source_name``. ``ContextualFilter``
copies whatever is active onto every record.

Fields live in a ContextVar holding a read-only mapping, so a worker thread
sees them only when its callable runs through ``contextvars.copy_context().run``
and cannot change what the submitting thread sees.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from types import MappingProxyType
from typing import Any, ContextManager, Dict, Iterator, Mapping, Optional
from uuid import uuid4

_EMPTY: Mapping[str, Any] = MappingProxyType({})

_fields: ContextVar[Mapping[str, Any]] = ContextVar("jobaggr_log_fields", default=_EMPTY)


def get_log_context() -> Dict[str, Any]:
    """Get a copy of the fields currently attached to log records."""
    return dict(_fields.get())


def push_log_context(**fields: Any) -> Token:
    """
    Add fields on top of the current ones; later values win.

    Returns:
        Token for ``pop_log_context``
    """
    return _fields.set(MappingProxyType({**_fields.get(), **fields}))


def pop_log_context(token: Token) -> None:
    """Restore the fields that were active before the matching push."""
    _fields.reset(token)


def clear_log_context() -> None:
    """Drop every field. Used between tests."""
    _fields.set(_EMPTY)


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Attach ``fields`` for the duration of the block, yielding the merged fields."""
    token = push_log_context(**fields)
    try:
        yield get_log_context()
    finally:
        pop_log_context(token)


def fetch_log_context(
    query: str, location: str, fetch_id: Optional[str] = None
) -> ContextManager[Dict[str, Any]]:
    """
    Scope for one aggregator search.

    A fresh ``fetch_id`` is generated unless one is given, so every record
    of the search (including those logged from worker threads) can be
    grouped. The yielded mapping carries the id.
    """
    return log_context(fetch_id=fetch_id or uuid4().hex, query=query, location=location)


def source_log_context(index: int, name: str) -> ContextManager[Dict[str, Any]]:
    """Scope for one source call within a search."""
    return log_context(source_index=index, source_name=name)
