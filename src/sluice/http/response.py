"""HTTP responses: the writer controllers push into, and what gets sent.

Controllers receive a ``ResponseWriter``, a mutable sink in the spirit
of Go's ``http.ResponseWriter``, and write a status, headers and body
into it. When dispatch finishes the writer is frozen into a
``Response``, which the ASGI sender translates into ``send()`` calls.

``send_json`` and ``send_error_json`` are the two ways the pipeline
itself writes bodies.
"""

from __future__ import annotations

import dataclasses
import json as json_module
import logging
from dataclasses import dataclass
from typing import Any

from sluice.errors import HTTPError
from sluice.http.headers import MutableHeaders

logger = logging.getLogger("sluice.server")

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    """A complete, immutable HTTP response."""

    body: bytes = b""
    status: int = 200
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of header *name* (case-insensitive)."""
        wanted = name.lower()
        for n, v in self.headers:
            if n.lower() == wanted:
                return v
        return default

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(self.body)


class ResponseWriter:
    """The response sink handed to every controller.

    ``write_header`` commits the status line; only the first call counts,
    later calls are ignored (and logged at debug), exactly as a
    partially-sent response would behave. ``write`` commits 200 when no
    status has been written yet.

    Nothing reaches the client until dispatch returns.
    """

    __slots__ = ("_chunks", "_status", "headers")

    def __init__(self) -> None:
        self.headers = MutableHeaders()
        self._status: int | None = None
        self._chunks: list[bytes] = []

    @property
    def status(self) -> int | None:
        """The committed status code, or ``None`` before the first write."""
        return self._status

    @property
    def written(self) -> bool:
        return self._status is not None

    def write_header(self, status: int) -> None:
        if not 100 <= status <= 599:
            msg = f"invalid HTTP status code: {status}"
            raise ValueError(msg)
        if self._status is not None:
            logger.debug("superfluous write_header(%d); status already %d", status, self._status)
            return
        self._status = status

    def write(self, data: bytes | str) -> int:
        """Append *data* to the body. Returns the number of bytes written."""
        if self._status is None:
            self._status = 200
        chunk = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self._chunks.append(chunk)
        return len(chunk)

    def to_response(self) -> Response:
        return Response(
            body=b"".join(self._chunks),
            status=self._status or 200,
            headers=self.headers.items(),
        )


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode_json(value: Any) -> bytes:
    """Encode *value* as compact UTF-8 JSON.

    Dataclass instances are encoded as objects. ``NaN`` and infinities
    are rejected with ``ValueError``; unsupported types raise
    ``TypeError``.
    """
    text = json_module.dumps(
        value,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
        default=_default,
    )
    return text.encode("utf-8")


def send_json(writer: ResponseWriter, value: Any) -> None:
    """Write *value* as a JSON response (200 unless a status was already written).

    The value is encoded before anything touches the writer, so an
    encoding failure leaves the response untouched.
    """
    body = encode_json(value)
    writer.headers.set("Content-Type", JSON_CONTENT_TYPE)
    writer.write(body)


def send_error_json(writer: ResponseWriter, error: HTTPError) -> None:
    """Write *error* as ``{"code": ..., "message": ...}`` with its status code.

    The status and headers are committed before the body is encoded, so
    a body that cannot be encoded still leaves the client with the error
    status (and an empty body).
    """
    writer.headers.set("Content-Type", JSON_CONTENT_TYPE)
    for name, value in error.headers:
        writer.headers.set(name, value)
    writer.write_header(error.code)
    writer.write(encode_json(error.to_dict()))
