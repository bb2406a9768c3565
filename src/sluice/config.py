"""Server configuration.

Config is a frozen dataclass, immutable after creation and passed to every
Queue at bind time. The two observers are optional; leaving either unset
makes it a no-op.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from sluice.http.request import Request

# Receives the classified HTTPError for every failed request, and a
# ResponseWriteError when the error response itself could not be written.
ErrorLogger: TypeAlias = Callable[[Exception], None]

# Receives the request, the elapsed time, and its unit: "m", "u" or "n".
AccessLogger: TypeAlias = Callable[["Request", int, str], None]


@dataclass(frozen=True, slots=True)
class Config:
    """Server configuration. Immutable after creation.

    Override what you need::

        from sluice.log import log_access, log_error

        config = Config(error_logger=log_error, access_logger=log_access, port=6060)
    """

    # Observers
    error_logger: ErrorLogger | None = None
    access_logger: AccessLogger | None = None

    # Listener
    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 1
    reload: bool = False
    log_level: str = "info"
