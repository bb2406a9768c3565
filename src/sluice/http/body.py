"""Request body helpers: Content-Type enforcement and JSON decoding.

Both helpers raise ``HTTPError`` subclasses so they can be called from
middleware or controllers and let the queue turn failures into JSON
error responses::

    async def create_book(writer, request):
        book = await decode_body_json(request, into=Book)
        ...
"""

from __future__ import annotations

import dataclasses
import json as json_module
from collections.abc import Mapping
from typing import Any

from sluice.errors import BadRequest, InternalServerError
from sluice.http.request import Request
from sluice.http.response import JSON_CONTENT_TYPE


async def read_body(
    request: Request,
    *content_types: str,
    limit: int | None = None,
) -> bytes:
    """Return the request body.

    When *content_types* are given, the request's media type (the part
    of Content-Type before ``;``, compared case-insensitively) must be one
    of them, otherwise ``BadRequest`` is raised before the body is read.
    """
    if content_types:
        received = (request.content_type or "").split(";", 1)[0].strip()
        if received.lower() not in {ct.lower() for ct in content_types}:
            msg = f"Bad Content-Type: {received}. Accept: {', '.join(content_types)}"
            raise BadRequest(msg)
    return await request.body(limit)


async def decode_body_json(
    request: Request,
    into: type | None = None,
    *,
    limit: int | None = None,
) -> Any:
    """Decode an ``application/json`` request body.

    Returns the decoded value, or an instance of the dataclass *into*
    built from a JSON object.

    Raises:
        BadRequest: wrong Content-Type, malformed JSON, or a payload that
            does not fit *into*.
        InternalServerError: *into* is not a dataclass type.
    """
    if into is not None and not (isinstance(into, type) and dataclasses.is_dataclass(into)):
        msg = f"decode_body_json requires a dataclass type, got {into!r}"
        raise InternalServerError(msg)

    raw = await read_body(request, JSON_CONTENT_TYPE, limit=limit)
    try:
        data = json_module.loads(raw)
    except UnicodeDecodeError as exc:
        raise BadRequest(f"request body is not valid UTF-8: {exc.reason}") from exc
    except json_module.JSONDecodeError as exc:
        raise BadRequest(str(exc)) from exc

    if into is None:
        return data
    if not isinstance(data, dict):
        msg = f"expected a JSON object, got {_json_type(data)}"
        raise BadRequest(msg)
    return build_dataclass(into, data)


def build_dataclass(cls: type, data: Mapping[str, Any]) -> Any:
    """Instantiate dataclass *cls* from a decoded JSON object.

    Unknown keys are ignored. Missing required fields and values whose
    JSON type does not match a ``str``/``int``/``float``/``bool``
    annotation raise ``BadRequest``. Other annotations are not checked.
    """
    kwargs: dict[str, Any] = {}
    missing: list[str] = []

    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.name not in data:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                missing.append(f.name)
            continue

        value = data[f.name]
        expected = _resolve_type(f.type)
        if not _matches(value, expected):
            msg = (
                f"field {f.name!r}: expected {expected.__name__}, "
                f"got {_json_type(value)}"
            )
            raise BadRequest(msg)
        kwargs[f.name] = float(value) if expected is float else value

    if missing:
        raise BadRequest(f"missing field(s): {', '.join(missing)}")
    return cls(**kwargs)


_SIMPLE_TYPES: dict[str, type] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
}


def _resolve_type(annotation: Any) -> Any:
    """Resolve string annotations (``from __future__ import annotations``)."""
    if isinstance(annotation, str):
        return _SIMPLE_TYPES.get(annotation, annotation)
    return annotation


def _matches(value: Any, expected: Any) -> bool:
    if expected is bool:
        return isinstance(value, bool)
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if expected is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected is str:
        return isinstance(value, str)
    return True


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"
