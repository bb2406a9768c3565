"""``sluice routes``: list registered routes.

Prints every route with its method, path, the length of its frozen
middleware chain, and the controller name.
"""

import argparse
import sys
from typing import Any

from sluice.cli._resolve import resolve_server
from sluice.queue import Queue


def _describe(handler: Any) -> tuple[str, str]:
    queue = getattr(handler, "__self__", handler)
    if isinstance(queue, Queue):
        controller = queue.controller
        name = getattr(controller, "__qualname__", type(controller).__name__)
        return str(len(queue.middleware)), name
    return "-", getattr(handler, "__qualname__", str(handler))


def run_routes(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, freeze it, and print its route table."""
    try:
        server = resolve_server(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    server._ensure_frozen()
    routes = server.router.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str, str]] = []
    for route in routes:
        count, controller = _describe(route.handler)
        rows.append((route.method, route.path, count, controller))

    headers = ("METHOD", "PATH", "MIDDLEWARE", "CONTROLLER")
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers[:3])]

    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    print(fmt.format(*headers))
    sep_len = sum(widths) + 6 + max(len(r[3]) for r in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))
