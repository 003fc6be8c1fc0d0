"""Repository protocols and behaviour shared by the resource clients."""

from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from postmark_cli.client.errors import (
    DecodeError,
    InvalidArgumentError,
    PostmarkConnectionError,
    PostmarkError,
    PostmarkRuntimeError,
)
from postmark_cli.client.models import (
    EmailBatchResponse,
    EmailData,
    EmailResponse,
    SenderData,
    SenderListResponse,
    SenderResponse,
    ServerData,
    ServerResponse,
)

MAX_COUNT = 500


class ServerRepository(Protocol):
    """Operations on the servers of an account."""

    def all(self, count: int = 10, offset: int = 0, name: str = "") -> list[ServerResponse]: ...

    def find(self, server_id: int) -> ServerResponse: ...

    def create(self, data: ServerData) -> ServerResponse: ...

    def update(self, server_id: int, data: ServerData) -> ServerResponse: ...

    def delete(self, server_id: int) -> bool: ...

    def get_token(self, server_id: int) -> str: ...


class SenderRepository(Protocol):
    """Operations on the sender signatures of an account."""

    def all(self, count: int = 100, offset: int = 0) -> list[SenderListResponse]: ...

    def find(self, sender_id: int) -> SenderResponse: ...

    def create(self, data: SenderData) -> SenderResponse: ...

    def update(self, sender_id: int, data: SenderData) -> SenderResponse: ...

    def delete(self, sender_id: int) -> bool: ...


class EmailRepository(Protocol):
    """Sending operations; require a server to be selected first."""

    def send(self, data: EmailData) -> EmailResponse: ...

    def send_batch(self, data: Sequence[EmailData]) -> EmailBatchResponse: ...

    def send_with_template(self, template_id: int, data: EmailData) -> EmailResponse: ...

    def send_batch_with_template(
        self, template_id: int, data: Sequence[EmailData]
    ) -> EmailBatchResponse: ...


class ResourceClient:
    """Base for clients bound to one API resource family."""

    label = "Resource"

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one request; transport failures become PostmarkConnectionError."""
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise PostmarkConnectionError(f"Could not reach Postmark API: {exc}") from exc

    @staticmethod
    def _expect_success(response: httpx.Response, action: str) -> None:
        if not response.is_success:
            raise PostmarkRuntimeError(
                f"Failed to {action}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

    @staticmethod
    def _json_list(response: httpx.Response, key: str) -> list[Any]:
        """Return the array stored under ``key`` in a JSON object body."""
        payload = response.json()
        items = payload.get(key) if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise DecodeError(f"Response is missing the '{key}' array")
        return items

    @staticmethod
    def _validate_pagination(count: int, offset: int) -> None:
        if count < 1 or count > MAX_COUNT:
            raise InvalidArgumentError(
                f"Count must be between 1 and {MAX_COUNT}, given: {count}"
            )
        if offset < 0:
            raise InvalidArgumentError(f"Offset cannot be negative, given: {offset}")

    def _validate_id(self, resource_id: int) -> None:
        if resource_id <= 0:
            raise InvalidArgumentError(f"{self.label} ID must be greater than 0")

    @staticmethod
    def _convert(exc: Exception) -> PostmarkError:
        """Map any failure onto the invalid-argument/connection/runtime taxonomy."""
        if isinstance(exc, PostmarkError):
            return exc
        wrapped = PostmarkRuntimeError(str(exc) or type(exc).__name__)
        wrapped.__cause__ = exc
        return wrapped
