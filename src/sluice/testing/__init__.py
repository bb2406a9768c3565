"""Test utilities for sluice servers::

    from sluice.testing import TestClient, make_request
"""

from sluice.testing.client import TestClient, build_scope
from sluice.testing.request import make_request

__all__ = ["TestClient", "build_scope", "make_request"]
