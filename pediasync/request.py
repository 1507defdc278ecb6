"""Request-scoped values carried in an immutable context chain."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

_MISSING = object()


class _Key(Enum):
    CLUSTER_NAME = "cluster-name"
    ACCEPT_HEADER = "accept-header"
    QUERY = "query"


class Context:
    """An immutable chain of key/value pairs; deriving never alters the parent."""

    __slots__ = ("_parent", "_key", "_value")

    def __init__(self) -> None:
        self._parent: Context | None = None
        self._key: Any = _MISSING
        self._value: Any = None

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a child context that carries ``value`` under ``key``."""
        child = Context()
        child._parent = self
        child._key = key
        child._value = value
        return child

    def value(self, key: Any) -> Any:
        """Return the nearest value stored under ``key``, or None."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._key is not _MISSING and ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None


def with_cluster_name(parent: Context, name: str) -> Context:
    if not name:
        return parent
    return parent.with_value(_Key.CLUSTER_NAME, name)


def cluster_name_from(ctx: Context) -> str | None:
    """Return the cluster name, or None when the context has none."""
    name = ctx.value(_Key.CLUSTER_NAME)
    return name if isinstance(name, str) else None


def cluster_name_value(ctx: Context) -> str:
    return cluster_name_from(ctx) or ""


def with_accept_header(parent: Context, accept: str) -> Context:
    if not accept:
        return parent
    return parent.with_value(_Key.ACCEPT_HEADER, accept)


def accept_header_from(ctx: Context) -> str:
    accept = ctx.value(_Key.ACCEPT_HEADER)
    return accept if isinstance(accept, str) else ""


def with_request_query(parent: Context, query: Mapping[str, list[str]] | None) -> Context:
    if query is None:
        return parent
    return parent.with_value(_Key.QUERY, query)


def request_query_from(ctx: Context) -> Mapping[str, list[str]] | None:
    query = ctx.value(_Key.QUERY)
    return query if isinstance(query, Mapping) else None


def has_request_query(ctx: Context) -> bool:
    return ctx.value(_Key.QUERY) is not None