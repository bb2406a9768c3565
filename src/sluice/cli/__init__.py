"""Sluice CLI: serve a server and list its routes.

Entry point registered as ``sluice`` in ``pyproject.toml``::

    [project.scripts]
    sluice = "sluice.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``sluice`` command."""
    parser = argparse.ArgumentParser(
        prog="sluice",
        description="Sluice: ordered middleware pipelines for JSON HTTP APIs.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- sluice run -------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve a sluice server with pounce")
    run_parser.add_argument("app", help="Import string (e.g. myapi:server)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument("--workers", type=int, default=None, help="Worker count")
    run_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart when source files change (development)",
    )
    run_parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level for sluice and pounce",
    )

    # -- sluice routes ----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapi:server)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from sluice.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from sluice.cli._routes import run_routes

        run_routes(args)
