"""Case-insensitive HTTP headers.

``Headers`` is the request side: immutable, built from the raw byte
pairs of the ASGI scope and decoded once. ``MutableHeaders`` is the
response side, owned by a ``ResponseWriter`` until the response is sent.
"""

from collections.abc import Iterator, Mapping


def _decode(raw: tuple[tuple[bytes, bytes], ...]) -> tuple[tuple[str, str], ...]:
    return tuple(
        (name.decode("latin-1").lower(), value.decode("latin-1")) for name, value in raw
    )


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive request headers.

    ``headers[name]`` returns the first value; ``get_list`` returns all of
    them (e.g. repeated ``Accept`` lines).
    """

    __slots__ = ("_items",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_items", _decode(raw))

    @classmethod
    def from_pairs(cls, pairs: Mapping[str, str] | None = None) -> "Headers":
        """Build headers from ``str`` pairs (tests and ``make_request``)."""
        raw = tuple(
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (pairs or {}).items()
        )
        return cls(raw)

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._items:
            if name == wanted:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = key.lower()
        return any(name == wanted for name, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._items))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._items))

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return every value for *key*, in arrival order."""
        wanted = key.lower()
        return [value for name, value in self._items if name == wanted]


class MutableHeaders:
    """Response headers, in the style of Go's ``http.Header``.

    ``set`` replaces every value for a name, ``add`` appends another one.
    Names keep the case they were first set with; lookups ignore case.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[tuple[str, str]] = []

    def set(self, name: str, value: str) -> None:
        self.delete(name)
        self._items.append((name, value))

    def add(self, name: str, value: str) -> None:
        self._items.append((name, value))

    def delete(self, name: str) -> None:
        wanted = name.lower()
        self._items = [(n, v) for n, v in self._items if n.lower() != wanted]

    def get(self, name: str, default: str | None = None) -> str | None:
        wanted = name.lower()
        for n, v in self._items:
            if n.lower() == wanted:
                return v
        return default

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def items(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._items)

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"
