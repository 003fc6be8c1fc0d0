"""Postmark facade - builds the shared transport and the resource clients."""

import httpx

from postmark_cli.client.auth import ServerAuth
from postmark_cli.client.cache import (
    CacheStore,
    MemoryStore,
    SenderCacheService,
    ServerCacheService,
)
from postmark_cli.client.email import EmailClient
from postmark_cli.client.errors import InvalidArgumentError
from postmark_cli.client.sender import SenderClient
from postmark_cli.client.server import ServerClient

ACCOUNT_TOKEN_HEADER = "X-Postmark-Account-Token"


class Postmark:
    """Entry point for the Postmark API.

    Usage:
        with Postmark("https://api.postmarkapp.com", account_token) as postmark:
            servers = postmark.server().all(count=50)
            sender = postmark.sender().find(12)

            response = postmark.email().with_server(servers[0].id).send(EmailData(
                from_address="noreply@example.com",
                to="user@example.com",
                subject="Hello",
                text_body="World",
            ))

    Server and sender calls authenticate with the account token. Email calls
    add the server token selected on the ``EmailClient``.
    """

    def __init__(
        self,
        endpoint: str,
        account_token: str,
        *,
        timeout: float = 30.0,
        cache_store: CacheStore | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not endpoint:
            raise InvalidArgumentError("Postmark API endpoint must be configured")
        if not account_token:
            raise InvalidArgumentError("Postmark account token must be configured")

        self.endpoint = endpoint.rstrip("/")
        self.client = httpx.Client(
            base_url=self.endpoint,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                ACCOUNT_TOKEN_HEADER: account_token,
            },
            timeout=timeout,
            transport=transport,
        )

        store = cache_store if cache_store is not None else MemoryStore()
        self.server_cache = ServerCacheService(store)
        self.sender_cache = SenderCacheService(store)

    def server(self) -> ServerClient:
        return ServerClient(self.client, self.server_cache)

    def sender(self) -> SenderClient:
        return SenderClient(self.client, self.sender_cache)

    def email(self) -> EmailClient:
        """A new email client with no server selected yet."""
        return EmailClient(self.client, ServerAuth(self.server()))

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "Postmark":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
