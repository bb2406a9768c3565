"""Server import resolution: ``"module:attribute"`` strings to Server instances.

Shared by ``sluice run`` and ``sluice routes``.
"""

import importlib

from sluice.app import Server


def resolve_server(import_string: str) -> Server:
    """Resolve an import string to a sluice Server instance.

    Accepts ``"module:attribute"`` format. When the attribute portion is
    omitted it defaults to ``"server"`` (``"myapi"`` resolves to
    ``myapi.server``). A callable that is not a Server is treated as a
    factory and called with no arguments.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a sluice ``Server``.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "server"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, Server):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, Server):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a sluice.Server instance"
        raise TypeError(msg)

    return obj
