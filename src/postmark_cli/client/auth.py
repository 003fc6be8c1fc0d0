"""Server-token resolution for email operations.

Sending requires a server token. It can be given directly with
``with_server_token()``, or looked up from a server ID with ``with_server()``.
The two modes are mutually exclusive. A token looked up by ID is fetched on
first use and kept for the lifetime of the resolver.
"""

import logging

from postmark_cli.client.errors import (
    AuthenticationRequiredError,
    InvalidArgumentError,
    PostmarkRuntimeError,
)
from postmark_cli.client.server import ServerClient

log = logging.getLogger(__name__)

SERVER_TOKEN_HEADER = "X-Postmark-Server-Token"


class ServerAuth:
    def __init__(self, servers: ServerClient) -> None:
        self._servers = servers
        self._server_id: int | None = None
        self._server_token: str | None = None
        self._configured = False

    @property
    def is_configured(self) -> bool:
        return self._configured

    @property
    def server_id(self) -> int | None:
        return self._server_id

    def with_server(self, server_id: int) -> None:
        if self._configured and self._server_id is None:
            raise InvalidArgumentError(
                "Cannot use with_server() when a server token is already set. "
                "Use either with_server() or with_server_token()."
            )
        if server_id <= 0:
            raise InvalidArgumentError("Server ID must be greater than 0")
        self._server_id = server_id
        self._server_token = None
        self._configured = True

    def with_server_token(self, server_token: str) -> None:
        if self._server_id is not None:
            raise InvalidArgumentError(
                "Cannot use with_server_token() when a server ID is already set. "
                "Use either with_server() or with_server_token()."
            )
        if not server_token:
            raise InvalidArgumentError("Server token must not be empty")
        self._server_token = server_token
        self._configured = True

    def resolve(self) -> str:
        """Return the server token, looking it up by server ID on first use."""
        if self._server_token is not None:
            return self._server_token
        if not self._configured or self._server_id is None:
            raise AuthenticationRequiredError()

        log.debug("Resolving server token for server %d", self._server_id)
        server = self._servers.find(self._server_id)
        if not server.api_tokens:
            log.error("No API tokens found for server (server_id=%d)", self._server_id)
            raise PostmarkRuntimeError("No API tokens found for server")
        self._server_token = server.api_tokens[0]
        return self._server_token

    def headers(self) -> dict[str, str]:
        """Headers to add to the shared transport for an email request."""
        return {SERVER_TOKEN_HEADER: self.resolve()}
