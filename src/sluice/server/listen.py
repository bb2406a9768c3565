"""Network listener: runs a sluice server under pounce.

pounce is an optional dependency (``pip install sluice[server]``). Pounce
takes the live ASGI callable directly, so no import string is needed.
"""

from __future__ import annotations

import logging
from typing import Any

from sluice.errors import ConfigurationError

logger = logging.getLogger("sluice.server")


def listen(
    app: Any,
    host: str,
    port: int,
    *,
    workers: int = 1,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """Start a pounce server for *app* and block until it stops.

    Args:
        app: ASGI callable (a sluice ``Server``).
        host: Bind host address.
        port: Bind port number.
        workers: Worker count.
        reload: Restart on source changes (development only).
        log_level: pounce log level.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = (
            "Serving requires the pounce ASGI server. "
            "Install it with: pip install sluice[server]"
        )
        raise ConfigurationError(msg) from exc

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        reload=reload,
        log_level=log_level,
    )
    logger.info("listening on http://%s:%d (workers=%d)", host, port, workers)
    Server(config, app).run()
