"""Sender signature management (account token)."""

import logging

import httpx

from postmark_cli.client.base import ResourceClient
from postmark_cli.client.cache import SenderCacheService
from postmark_cli.client.models import SenderData, SenderListResponse, SenderResponse

log = logging.getLogger(__name__)


class SenderClient(ResourceClient):
    label = "Sender"

    def __init__(self, client: httpx.Client, cache: SenderCacheService) -> None:
        super().__init__(client)
        self._cache = cache

    def all(self, count: int = 100, offset: int = 0) -> list[SenderListResponse]:
        self._validate_pagination(count, offset)
        key = self._cache.generate_key(count, offset)

        try:
            with self._cache.locked(key):
                cached = self._cache.get(key)
                if cached is not None:
                    return cached

                response = self._request(
                    "GET", "/senders", params={"count": count, "offset": offset}
                )
                self._expect_success(response, "retrieve senders")
                senders = [
                    SenderListResponse.from_wire(sender)
                    for sender in self._json_list(response, "SenderSignatures")
                ]
                self._cache.put(key, senders)
                return senders
        except Exception as exc:
            log.error("Failed to retrieve senders (count=%d, offset=%d): %s", count, offset, exc)
            raise self._convert(exc)

    def find(self, sender_id: int) -> SenderResponse:
        self._validate_id(sender_id)

        try:
            response = self._request("GET", f"/senders/{sender_id}")
            self._expect_success(response, "retrieve sender details")
            return SenderResponse.from_wire(response.json())
        except Exception as exc:
            log.error("Failed to find sender (sender_id=%d): %s", sender_id, exc)
            raise self._convert(exc)

    def create(self, data: SenderData) -> SenderResponse:
        try:
            response = self._request("POST", "/senders", json=data.to_wire())
            self._expect_success(response, "create sender")
            return SenderResponse.from_wire(response.json())
        except Exception as exc:
            log.error("Failed to create sender (from_email=%r): %s", data.from_email, exc)
            raise self._convert(exc)

    def update(self, sender_id: int, data: SenderData) -> SenderResponse:
        self._validate_id(sender_id)

        try:
            response = self._request("PUT", f"/senders/{sender_id}", json=data.to_wire())
            self._expect_success(response, "update sender")
            return SenderResponse.from_wire(response.json())
        except Exception as exc:
            log.error("Failed to update sender (sender_id=%d): %s", sender_id, exc)
            raise self._convert(exc)

    def delete(self, sender_id: int) -> bool:
        self._validate_id(sender_id)

        try:
            response = self._request("DELETE", f"/senders/{sender_id}")
            return response.is_success
        except Exception as exc:
            log.error("Failed to delete sender (sender_id=%d): %s", sender_id, exc)
            raise self._convert(exc)
