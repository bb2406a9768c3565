"""Bearer-token authentication middleware.

Authenticates API requests via the ``Authorization`` header and stores
the resolved identity on ``request.state`` for the middleware and
controller that run after it.

Usage::

    from sluice.middleware.auth import TokenAuth

    async def verify(token: str) -> User | None:
        return await users.by_token(token)

    server = Server(config, TokenAuth(verify))

    async def profile(writer, request):
        send_json(writer, {"name": request.state.user.name})
"""

from collections.abc import Awaitable, Callable
from typing import Any

from sluice._internal.invoke import invoke
from sluice.errors import ConfigurationError, Unauthorized
from sluice.http.request import Request

TokenVerifier = Callable[[str], Awaitable[Any] | Any]


class TokenAuth:
    """Require a valid bearer token.

    Raises ``Unauthorized`` when the header is missing, uses another
    scheme, carries an empty token, or ``verify_token`` returns ``None``.
    ``verify_token`` may be sync or async.
    """

    __slots__ = ("_header", "_scheme", "_state_key", "_verify_token")

    def __init__(
        self,
        verify_token: TokenVerifier,
        *,
        header: str = "Authorization",
        scheme: str = "Bearer",
        state_key: str = "user",
    ) -> None:
        if not callable(verify_token):
            msg = "TokenAuth requires a callable 'verify_token'."
            raise ConfigurationError(msg)
        self._verify_token = verify_token
        self._header = header
        self._scheme = scheme
        self._state_key = state_key

    def _extract_token(self, request: Request) -> str:
        header = request.headers.get(self._header)
        if header is None:
            raise Unauthorized(f"Missing {self._header} header")

        prefix = f"{self._scheme} "
        if not header.startswith(prefix):
            raise Unauthorized(f"Expected {self._scheme} credentials")

        token = header[len(prefix) :].strip()
        if not token:
            raise Unauthorized(f"Empty {self._scheme} token")
        return token

    async def __call__(self, request: Request) -> None:
        token = self._extract_token(request)
        user = await invoke(self._verify_token, token)
        if user is None:
            raise Unauthorized("Invalid token")
        setattr(request.state, self._state_key, user)
