"""Postmark API client - servers, sender signatures and email sending."""

from postmark_cli.client.errors import (
    AuthenticationRequiredError,
    ErrorKind,
    InvalidArgumentError,
    PostmarkConnectionError,
    PostmarkError,
    PostmarkRuntimeError,
)
from postmark_cli.client.factory import Postmark
from postmark_cli.client.models import (
    AttachmentData,
    EmailBatchResponse,
    EmailData,
    EmailResponse,
    HeaderData,
    SenderData,
    SenderListResponse,
    SenderResponse,
    ServerColor,
    ServerData,
    ServerResponse,
    TrackLinks,
)

__all__ = [
    "Postmark",
    "PostmarkError",
    "ErrorKind",
    "InvalidArgumentError",
    "AuthenticationRequiredError",
    "PostmarkConnectionError",
    "PostmarkRuntimeError",
    "AttachmentData",
    "EmailBatchResponse",
    "EmailData",
    "EmailResponse",
    "HeaderData",
    "SenderData",
    "SenderListResponse",
    "SenderResponse",
    "ServerColor",
    "ServerData",
    "ServerResponse",
    "TrackLinks",
]
