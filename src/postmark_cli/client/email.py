"""Email sending (server token)."""

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from postmark_cli.client.auth import ServerAuth
from postmark_cli.client.base import ResourceClient
from postmark_cli.client.models import EmailBatchResponse, EmailData, EmailResponse

log = logging.getLogger(__name__)


class EmailClient(ResourceClient):
    """Send single, batch and templated messages through one server.

    Select the server first::

        postmark.email().with_server(7).send(message)
        postmark.email().with_server_token("...").send_batch(messages)
    """

    label = "Email"

    def __init__(self, client: httpx.Client, auth: ServerAuth) -> None:
        super().__init__(client)
        self._auth = auth

    def with_server(self, server_id: int) -> "EmailClient":
        self._auth.with_server(server_id)
        return self

    def with_server_token(self, server_token: str) -> "EmailClient":
        self._auth.with_server_token(server_token)
        return self

    def _post(self, url: str, payload: Any, action: str) -> Any:
        response = self._request("POST", url, json=payload, headers=self._auth.headers())
        self._expect_success(response, action)
        return response.json()

    def send(self, data: EmailData) -> EmailResponse:
        try:
            body = self._post("/email", data.to_wire(), "send email")
            return EmailResponse.from_wire(body)
        except Exception as exc:
            log.error("Failed to send email (server_id=%s): %s", self._auth.server_id, exc)
            raise self._convert(exc)

    def send_batch(self, data: Sequence[EmailData]) -> EmailBatchResponse:
        try:
            payload = {"Messages": [email.to_wire() for email in data]}
            body = self._post("/email/batch", payload, "send batch emails")
            return EmailBatchResponse.from_wire(body)
        except Exception as exc:
            log.error(
                "Failed to send batch emails (server_id=%s, count=%d): %s",
                self._auth.server_id,
                len(data),
                exc,
            )
            raise self._convert(exc)

    def send_with_template(self, template_id: int, data: EmailData) -> EmailResponse:
        try:
            payload = {**data.to_wire(), "TemplateId": template_id}
            body = self._post("/email/withTemplate", payload, "send email with template")
            return EmailResponse.from_wire(body)
        except Exception as exc:
            log.error(
                "Failed to send email with template (server_id=%s, template_id=%d): %s",
                self._auth.server_id,
                template_id,
                exc,
            )
            raise self._convert(exc)

    def send_batch_with_template(
        self, template_id: int, data: Sequence[EmailData]
    ) -> EmailBatchResponse:
        try:
            payload = {
                "Messages": [{**email.to_wire(), "TemplateId": template_id} for email in data]
            }
            body = self._post(
                "/email/batchWithTemplates", payload, "send batch emails with template"
            )
            return EmailBatchResponse.from_wire(body)
        except Exception as exc:
            log.error(
                "Failed to send batch emails with template "
                "(server_id=%s, template_id=%d, count=%d): %s",
                self._auth.server_id,
                template_id,
                len(data),
                exc,
            )
            raise self._convert(exc)
