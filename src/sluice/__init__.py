"""Sluice: ordered middleware pipelines for JSON HTTP APIs.

Every route is a queue: global middleware, route middleware, then the
controller. The first middleware that raises stops the queue, and the
error goes back to the client as ``{"code": ..., "message": ...}``.

Basic usage::

    from sluice import Config, NotFound, Server, send_json

    server = Server(Config())

    async def show_book(writer, request):
        book = BOOKS.get(request.path_params["id"])
        if book is None:
            raise NotFound("no such book")
        send_json(writer, book)

    server.get("/books/{id}", show_book)
    server.run()

Serving needs the pounce listener (``pip install sluice[server]``).
"""

import importlib

__version__ = "0.1.0"
__all__ = [
    "BadRequest",
    "Config",
    "ConfigurationError",
    "Forbidden",
    "Group",
    "HTTPError",
    "InternalServerError",
    "MethodNotAllowed",
    "NotFound",
    "Queue",
    "Request",
    "RequireContentType",
    "Response",
    "ResponseWriteError",
    "ResponseWriter",
    "Server",
    "SluiceError",
    "TokenAuth",
    "Unauthorized",
    "decode_body_json",
    "read_body",
    "send_error_json",
    "send_json",
]


# name -> (module, attribute), resolved on first access
_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Server": ("sluice.app", "Server"),
    "Config": ("sluice.config", "Config"),
    "Queue": ("sluice.queue", "Queue"),
    "Group": ("sluice.group", "Group"),
    "Request": ("sluice.http.request", "Request"),
    "Response": ("sluice.http.response", "Response"),
    "ResponseWriter": ("sluice.http.response", "ResponseWriter"),
    "send_json": ("sluice.http.response", "send_json"),
    "send_error_json": ("sluice.http.response", "send_error_json"),
    "read_body": ("sluice.http.body", "read_body"),
    "decode_body_json": ("sluice.http.body", "decode_body_json"),
    "TokenAuth": ("sluice.middleware.auth", "TokenAuth"),
    "RequireContentType": ("sluice.middleware.builtin", "RequireContentType"),
    "SluiceError": ("sluice.errors", "SluiceError"),
    "ConfigurationError": ("sluice.errors", "ConfigurationError"),
    "ResponseWriteError": ("sluice.errors", "ResponseWriteError"),
    "HTTPError": ("sluice.errors", "HTTPError"),
    "BadRequest": ("sluice.errors", "BadRequest"),
    "Unauthorized": ("sluice.errors", "Unauthorized"),
    "Forbidden": ("sluice.errors", "Forbidden"),
    "NotFound": ("sluice.errors", "NotFound"),
    "MethodNotAllowed": ("sluice.errors", "MethodNotAllowed"),
    "InternalServerError": ("sluice.errors", "InternalServerError"),
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import sluice`` fast while providing a clean top-level API.
    """
    target = _LAZY_IMPORTS.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    module_name, attr = target
    value = getattr(importlib.import_module(module_name), attr)
    globals()[name] = value
    return value
