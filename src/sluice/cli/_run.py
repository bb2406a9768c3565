"""``sluice run``: serve a server with pounce."""

import argparse
import logging
import sys

from sluice.cli._resolve import resolve_server
from sluice.errors import ConfigurationError
from sluice.server.listen import listen


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it. CLI flags override ``server.config``."""
    try:
        server = resolve_server(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    config = server.config
    log_level = args.log_level or config.log_level
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    server._ensure_frozen()
    try:
        listen(
            server,
            args.host or config.host,
            args.port or config.port,
            workers=args.workers if args.workers is not None else config.workers,
            reload=args.reload or config.reload,
            log_level=log_level,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
