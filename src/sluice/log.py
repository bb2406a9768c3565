"""Ready-made observers for ``Config``.

Both write through stdlib ``logging`` and never configure handlers::

    config = Config(error_logger=log_error, access_logger=log_access)
"""

from __future__ import annotations

import logging

from sluice.errors import HTTPError
from sluice.http.request import Request

access_logger = logging.getLogger("sluice.access")
error_logger = logging.getLogger("sluice.error")


def log_access(request: Request, duration: int, unit: str) -> None:
    """Log ``GET /books?page=2 3ms`` at INFO on ``sluice.access``."""
    access_logger.info("%s %s %d%ss", request.method, request.url, duration, unit)


def log_error(error: Exception) -> None:
    """Log a failed request on ``sluice.error``.

    Client errors (4xx) log at WARNING. Server errors and anything that
    is not an ``HTTPError`` (a double fault) log at ERROR.
    """
    if isinstance(error, HTTPError) and error.code < 500:
        error_logger.warning("%s", error)
    else:
        error_logger.error("%s", error)
