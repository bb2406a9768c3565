"""Sluice exception hierarchy.

Shared across the router, the queue, the server, and middleware so every
module raises and catches the same types.

``HTTPError`` is the structured error: it carries the status code and a
human message and is sent to the client verbatim. Any other exception
that reaches the queue is unstructured and becomes a 500.
"""

from __future__ import annotations

from collections.abc import Iterable
from http import HTTPStatus


class SluiceError(Exception):
    """Base for all sluice-specific errors."""


class ConfigurationError(SluiceError):
    """Raised when the server is set up incorrectly.

    Duplicate routes, malformed path patterns, and a missing listener
    extra all surface as this error during setup, never per request.
    """


class ResponseWriteError(SluiceError):
    """Writing an error response failed (a double fault).

    Reported through the error logger only. The original failure is
    attached as ``__cause__``.
    """


def reason_phrase(code: int) -> str:
    """Standard reason phrase for *code*, or ``""`` when unknown."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


class HTTPError(SluiceError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware, controllers, and the router. The queue turns it
    into a JSON response of the form ``{"code": ..., "message": ...}``.

    ``headers`` are sent with the response but never appear in the body.
    The three fields are read-only; the exception object itself stays a
    normal exception so tracebacks and chaining can be attached to it.
    """

    def __init__(
        self,
        code: int,
        message: str = "",
        headers: Iterable[tuple[str, str]] = (),
    ) -> None:
        if not isinstance(code, int) or not 100 <= code <= 599:
            msg = f"HTTP status code must be an integer in 100..599, got {code!r}"
            raise ValueError(msg)
        super().__init__(code, message)
        self._code = code
        self._message = message
        self._headers: tuple[tuple[str, str], ...] = tuple(headers)

    @property
    def code(self) -> int:
        return self._code

    @property
    def message(self) -> str:
        return self._message

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return self._headers

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HTTPError):
            return NotImplemented
        return (type(self), self._code, self._message, self._headers) == (
            type(other),
            other._code,
            other._message,
            other._headers,
        )

    def __hash__(self) -> int:
        return hash((type(self), self._code, self._message, self._headers))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self._code}, message={self._message!r})"

    @property
    def reason(self) -> str:
        return reason_phrase(self.code)

    def describe(self) -> str:
        """Render ``"<code> <reason>: <message>"`` for logs."""
        return f"{self.code} {self.reason}: {self.message}"

    def to_dict(self) -> dict[str, int | str]:
        """The JSON body sent to the client."""
        return {"code": self.code, "message": self.message}

    def __str__(self) -> str:
        return self.describe()


class BadRequest(HTTPError):  # noqa: N818
    """400: the request is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(code=400, message=message)


class Unauthorized(HTTPError):  # noqa: N818
    """401: the request lacks valid credentials."""

    def __init__(self, message: str) -> None:
        super().__init__(code=401, message=message)


class Forbidden(HTTPError):  # noqa: N818
    """403: the credentials are valid but not sufficient."""

    def __init__(self, message: str) -> None:
        super().__init__(code=403, message=message)


class NotFound(HTTPError):  # noqa: N818
    """404: no such resource."""

    def __init__(self, message: str) -> None:
        super().__init__(code=404, message=message)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path exists but not for this HTTP method.

    When *allowed* is given, an ``Allow`` header listing the valid
    methods (sorted) is attached.
    """

    def __init__(self, message: str, allowed: Iterable[str] = ()) -> None:
        allow_value = ", ".join(sorted(allowed))
        headers = (("Allow", allow_value),) if allow_value else ()
        super().__init__(code=405, message=message, headers=headers)


class InternalServerError(HTTPError):  # noqa: N818
    """500: something unexpected went wrong."""

    def __init__(self, message: str) -> None:
        super().__init__(code=500, message=message)


def to_http_error(exc: BaseException) -> HTTPError:
    """Classify *exc*: structured errors pass through, the rest become 500.

    The original message is exposed to the client. Wrap errors in an
    ``HTTPError`` before raising them to control what the client sees.
    """
    if isinstance(exc, HTTPError):
        return exc
    return InternalServerError(str(exc) or type(exc).__name__)
