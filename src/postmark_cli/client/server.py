"""Server management (account token)."""

import logging

import httpx

from postmark_cli.client.base import ResourceClient
from postmark_cli.client.cache import ServerCacheService
from postmark_cli.client.errors import PostmarkRuntimeError
from postmark_cli.client.models import ServerData, ServerResponse

log = logging.getLogger(__name__)


class ServerClient(ResourceClient):
    label = "Server"

    def __init__(self, client: httpx.Client, cache: ServerCacheService) -> None:
        super().__init__(client)
        self._cache = cache

    def get_token(self, server_id: int) -> str:
        """Return the first API token of a server."""
        try:
            server = self.find(server_id)
            if not server.api_tokens:
                raise PostmarkRuntimeError("No API tokens found for server")
            return server.api_tokens[0]
        except Exception as exc:
            log.error("Failed to get server token (server_id=%d): %s", server_id, exc)
            raise PostmarkRuntimeError(f"Failed to get server token: {exc}") from exc

    def all(self, count: int = 10, offset: int = 0, name: str = "") -> list[ServerResponse]:
        """List servers.

        Only unfiltered listings (empty ``name``) are read from and written to
        the cache.
        """
        self._validate_pagination(count, offset)
        key = self._cache.generate_key(count, offset, name)

        try:
            if name:
                return self._fetch_all(count, offset, name)
            with self._cache.locked(key):
                cached = self._cache.get(key)
                if cached is not None:
                    return cached
                servers = self._fetch_all(count, offset, name)
                self._cache.put(key, servers)
                return servers
        except Exception as exc:
            log.error(
                "Failed to retrieve servers (count=%d, offset=%d, name=%r): %s",
                count,
                offset,
                name,
                exc,
            )
            raise self._convert(exc)

    def _fetch_all(self, count: int, offset: int, name: str) -> list[ServerResponse]:
        response = self._request(
            "GET", "/servers", params={"count": count, "offset": offset, "name": name}
        )
        self._expect_success(response, "retrieve servers")
        servers = self._json_list(response, "Servers")
        return [ServerResponse.from_wire(server) for server in servers]

    def find(self, server_id: int) -> ServerResponse:
        self._validate_id(server_id)

        try:
            response = self._request("GET", f"/servers/{server_id}")
            self._expect_success(response, "retrieve server details")
            return ServerResponse.from_wire(response.json())
        except Exception as exc:
            log.error("Failed to find server (server_id=%d): %s", server_id, exc)
            raise self._convert(exc)

    def create(self, data: ServerData) -> ServerResponse:
        try:
            response = self._request("POST", "/servers", json=data.to_wire())
            self._expect_success(response, "create server")
            return ServerResponse.from_wire(response.json())
        except Exception as exc:
            log.error("Failed to create server (name=%r): %s", data.name, exc)
            raise self._convert(exc)

    def update(self, server_id: int, data: ServerData) -> ServerResponse:
        self._validate_id(server_id)

        try:
            response = self._request("PUT", f"/servers/{server_id}", json=data.to_wire())
            self._expect_success(response, "update server")
            return ServerResponse.from_wire(response.json())
        except Exception as exc:
            log.error("Failed to update server (server_id=%d, name=%r): %s", server_id, data.name, exc)
            raise self._convert(exc)

    def delete(self, server_id: int) -> bool:
        """Delete a server; returns False when the API refuses."""
        self._validate_id(server_id)

        try:
            response = self._request("DELETE", f"/servers/{server_id}")
            return response.is_success
        except Exception as exc:
            log.error("Failed to delete server (server_id=%d): %s", server_id, exc)
            raise self._convert(exc)
