"""Middleware: request validators, Protocol-based, no inheritance required.

A middleware is any callable matching:
    def mw(request: Request) -> None

It permits by returning and aborts by raising. Sync middleware runs in a
worker thread; async middleware is awaited.

Built-in middleware:
    TokenAuth -- Bearer-token authentication, identity on request.state
    RequireContentType -- Reject bodies of unexpected media types
"""

from sluice.middleware.auth import TokenAuth
from sluice.middleware.builtin import RequireContentType
from sluice.middleware.protocol import Handler, Middleware

__all__ = [
    "Handler",
    "Middleware",
    "RequireContentType",
    "TokenAuth",
]
