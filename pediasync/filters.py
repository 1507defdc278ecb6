"""WSGI middleware that records request details in the request context."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import parse_qs, urlencode

from pediasync import request
from pediasync.request import Context

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]

_CONTEXT_KEY = "pediasync.context"


def request_context(environ: dict) -> Context:
    """Return the context attached to a WSGI environ, or an empty one."""
    ctx = environ.get(_CONTEXT_KEY)
    return ctx if isinstance(ctx, Context) else Context()


def _with_context(environ: dict, ctx: Context) -> dict:
    derived = dict(environ)
    derived[_CONTEXT_KEY] = ctx
    return derived


def _parse_query(environ: dict) -> dict[str, list[str]]:
    return parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)


def with_accept_header(app: WSGIApp) -> WSGIApp:
    """Store the request's Accept header in its context."""

    def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        ctx = request.with_accept_header(request_context(environ), environ.get("HTTP_ACCEPT", ""))
        return app(_with_context(environ, ctx), start_response)

    return wrapped


def with_request_query(app: WSGIApp) -> WSGIApp:
    """Store the parsed query string in the request context."""

    def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        ctx = request.with_request_query(request_context(environ), _parse_query(environ))
        return app(_with_context(environ, ctx), start_response)

    return wrapped


def remove_field_selector_from_request(app: WSGIApp) -> WSGIApp:
    """Drop ``fieldSelector`` from the query string, keeping it in the context.

    Downstream handlers then never see or validate the field selector, while
    the original query remains available through the request context.
    """

    def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        ctx = request_context(environ)
        if not request.has_request_query(ctx):
            ctx = request.with_request_query(ctx, _parse_query(environ))
        environ = _with_context(environ, ctx)

        query = _parse_query(environ)
        selectors = query.get("fieldSelector")
        if selectors and selectors[0] != "":
            del query["fieldSelector"]
            environ["QUERY_STRING"] = urlencode(sorted(query.items()), doseq=True)

        return app(environ, start_response)

    return wrapped