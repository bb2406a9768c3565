"""Built-in middleware: Content-Type guard."""

from sluice.errors import BadRequest
from sluice.http.request import Request


class RequireContentType:
    """Reject request bodies that are not one of the given media types.

    Requests without a body pass through, so one guard can sit in front
    of both ``GET`` and ``POST`` routes::

        server.group("/books", RequireContentType("application/json"))
    """

    __slots__ = ("_media_types",)

    def __init__(self, *media_types: str) -> None:
        self._media_types = tuple(media_types)

    def __call__(self, request: Request) -> None:
        declared = request.content_length
        has_body = (declared is not None and declared > 0) or (
            "transfer-encoding" in request.headers
        )
        if not has_body:
            return

        if request.media_type not in {mt.lower() for mt in self._media_types}:
            received = request.content_type or ""
            msg = f"Bad Content-Type: {received}. Accept: {', '.join(self._media_types)}"
            raise BadRequest(msg)
