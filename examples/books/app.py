"""Books: a JSON API built from middleware queues.

Demonstrates global middleware (request ids), a registration group whose
methods share a loader, method-only middleware (bearer-token auth on
writes), typed JSON bodies, and the stdlib-logging observers.

Run:
    cd examples/books && python app.py
"""

import threading
import uuid
from dataclasses import asdict, dataclass

from sluice import (
    BadRequest,
    Config,
    NotFound,
    Request,
    RequireContentType,
    ResponseWriter,
    Server,
    TokenAuth,
    decode_body_json,
    send_json,
)
from sluice.log import log_access, log_error

# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Book:
    id: int
    title: str
    author: str
    pages: int


@dataclass(slots=True)
class BookInput:
    title: str
    author: str
    pages: int


_books: dict[int, Book] = {}
_next_id = 1
_lock = threading.Lock()

TOKENS = {"editor-token": "editor"}


def _get_next_id() -> int:
    global _next_id
    with _lock:
        n = _next_id
        _next_id += 1
        return n


def _validate(data: BookInput) -> None:
    if not data.title.strip():
        raise BadRequest("title must not be empty")
    if data.pages <= 0:
        raise BadRequest("pages must be positive")


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


def request_id(request: Request) -> None:
    """Tag every request; controllers echo it back."""
    request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex


def load_book(request: Request) -> None:
    """Resolve ``{id}`` once for every method on /books/{id}."""
    book_id = int(request.path_params["id"])
    with _lock:
        book = _books.get(book_id)
    if book is None:
        raise NotFound(f"no book with id {book_id}")
    request.state.book = book


def verify_token(token: str) -> str | None:
    return TOKENS.get(token)


require_editor = TokenAuth(verify_token)

# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------


async def list_books(writer: ResponseWriter, request: Request) -> None:
    with _lock:
        books = sorted(_books.values(), key=lambda b: b.id)
    send_json(writer, {"data": [asdict(b) for b in books], "total": len(books)})


async def create_book(writer: ResponseWriter, request: Request) -> None:
    data = await decode_body_json(request, into=BookInput, limit=64 * 1024)
    _validate(data)
    book = Book(id=_get_next_id(), **asdict(data))
    with _lock:
        _books[book.id] = book
    writer.headers.set("Location", f"/books/{book.id}")
    writer.headers.set("X-Request-Id", request.state.request_id)
    writer.write_header(201)
    send_json(writer, book)


async def show_book(writer: ResponseWriter, request: Request) -> None:
    send_json(writer, request.state.book)


async def update_book(writer: ResponseWriter, request: Request) -> None:
    data = await decode_body_json(request, into=BookInput)
    _validate(data)
    book = Book(id=request.state.book.id, **asdict(data))
    with _lock:
        _books[book.id] = book
    send_json(writer, book)


def delete_book(writer: ResponseWriter, request: Request) -> None:
    with _lock:
        _books.pop(request.state.book.id, None)
    writer.write_header(204)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

server = Server(Config(error_logger=log_error, access_logger=log_access), request_id)

(
    server.group("/books", RequireContentType("application/json"))
    .get(list_books)
    .post(create_book, require_editor)
)
(
    server.group("/books/{id:int}", load_book)
    .get(show_book)
    .middleware(RequireContentType("application/json"))
    .put(update_book, require_editor)
    .delete(delete_book, require_editor)
)

if __name__ == "__main__":
    import logging

    logging.basicConfig(level=logging.INFO)
    server.run()
