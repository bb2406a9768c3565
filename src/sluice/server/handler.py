"""ASGI handler: translates ASGI scope/messages to sluice types.

The only component that touches raw ASGI directly. Converts the scope to
a ``Request``, matches the route, dispatches the route's queue, and sends
the buffered ``Response`` back through ASGI ``send()``.
"""

import logging

from sluice._internal.types import Receive, Scope, Send
from sluice.errors import HTTPError, InternalServerError
from sluice.http.request import Request
from sluice.http.response import Response, ResponseWriter, send_error_json
from sluice.routing.router import Router
from sluice.server.sender import send_response

logger = logging.getLogger("sluice.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    writer = ResponseWriter()

    try:
        match = router.match(request.method, request.path)
    except HTTPError as exc:
        # 404/405 never reach a queue, so the configured loggers never see them.
        logger.debug("%s %s: %s", request.method, request.path, exc)
        send_error_json(writer, exc)
        await send_response(writer.to_response(), send)
        return

    try:
        await match.route.handler(writer, request.with_path_params(match.path_params))
        response = writer.to_response()
    except Exception as exc:
        logger.exception("unhandled error dispatching %s %s", request.method, request.path)
        response = _internal_error(exc)

    await send_response(response, send)


def _internal_error(exc: Exception) -> Response:
    """A fresh 500 response, independent of whatever the writer holds."""
    writer = ResponseWriter()
    send_error_json(writer, InternalServerError(str(exc) or type(exc).__name__))
    return writer.to_response()
