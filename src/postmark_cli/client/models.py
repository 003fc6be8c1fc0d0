"""Request and response value objects for the Postmark API.

Every object is a frozen dataclass. Request objects project themselves into
the PascalCase wire format with ``to_wire()``; response objects are parsed
with ``from_wire()``, which raises :class:`DecodeError` when a required field
is missing or has the wrong type.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from postmark_cli.client.errors import DecodeError, InvalidArgumentError


class TrackLinks(StrEnum):
    NONE = "None"
    HTML_AND_TEXT = "HtmlAndText"
    HTML_ONLY = "HtmlOnly"
    TEXT_ONLY = "TextOnly"


class ServerColor(StrEnum):
    BLUE = "blue"
    RED = "red"
    GREEN = "green"
    ORANGE = "orange"
    PURPLE = "purple"
    YELLOW = "yellow"
    PINK = "pink"
    BLACK = "black"
    WHITE = "white"


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------

_MISSING = object()


def _as_mapping(data: Any, type_name: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DecodeError(f"{type_name}: expected a JSON object, got {type(data).__name__}")
    return data


def _required(data: Mapping[str, Any], key: str, kind: type | tuple[type, ...], type_name: str) -> Any:
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise DecodeError(f"{type_name}: missing required field '{key}'")
    # bool is a subclass of int; an int field must not accept true/false
    if kind is int and isinstance(value, bool):
        raise DecodeError(f"{type_name}: field '{key}' must be int, got bool")
    if not isinstance(value, kind):
        expected = kind.__name__ if isinstance(kind, type) else "/".join(k.__name__ for k in kind)
        raise DecodeError(f"{type_name}: field '{key}' must be {expected}, got {type(value).__name__}")
    return value


def _optional(
    data: Mapping[str, Any],
    key: str,
    kind: type | tuple[type, ...],
    type_name: str,
    default: Any = None,
) -> Any:
    value = data.get(key)
    if value is None:
        return default
    return _required(data, key, kind, type_name)


def _track_links(value: str | None, type_name: str) -> TrackLinks:
    if value is None:
        return TrackLinks.NONE
    try:
        return TrackLinks(value)
    except ValueError:
        raise DecodeError(f"{type_name}: unknown TrackLinks value {value!r}") from None


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ServerData:
    """Payload for creating or updating a server."""

    name: str
    color: str = ServerColor.BLUE
    smtp_api_activated: bool = False
    raw_email_enabled: bool = True
    post_first_open_only: bool = False
    track_opens: bool = True
    track_links: TrackLinks = TrackLinks.NONE
    inbound_spam_threshold: int = 0
    delivery_hook_url: str | None = None
    inbound_hook_url: str | None = None
    bounce_hook_url: str | None = None
    open_hook_url: str | None = None
    inbound_domain: str | None = None

    @staticmethod
    def from_response(server: ServerResponse) -> ServerData:
        """Seed an update payload from the current state of a server."""
        return ServerData(
            name=server.name,
            color=server.color,
            smtp_api_activated=server.smtp_api_activated,
            raw_email_enabled=server.raw_email_enabled,
            post_first_open_only=server.post_first_open_only,
            track_opens=server.track_opens,
            track_links=server.track_links,
            inbound_spam_threshold=server.inbound_spam_threshold,
            delivery_hook_url=server.delivery_hook_url,
            inbound_hook_url=server.inbound_hook_url,
            bounce_hook_url=server.bounce_hook_url,
            open_hook_url=server.open_hook_url,
            inbound_domain=server.inbound_domain,
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Color": str(self.color),
            "SmtpApiActivated": self.smtp_api_activated,
            "RawEmailEnabled": self.raw_email_enabled,
            "PostFirstOpenOnly": self.post_first_open_only,
            "TrackOpens": self.track_opens,
            "TrackLinks": str(self.track_links),
            "InboundSpamThreshold": self.inbound_spam_threshold,
            "DeliveryHookUrl": self.delivery_hook_url,
            "InboundHookUrl": self.inbound_hook_url,
            "BounceHookUrl": self.bounce_hook_url,
            "OpenHookUrl": self.open_hook_url,
            "InboundDomain": self.inbound_domain,
        }


@dataclass(frozen=True, slots=True)
class ServerResponse:
    id: int
    name: str
    api_tokens: tuple[str, ...]
    color: str
    smtp_api_activated: bool
    raw_email_enabled: bool
    server_link: str = ""
    delivery_hook_url: str | None = None
    inbound_hook_url: str | None = None
    bounce_hook_url: str | None = None
    open_hook_url: str | None = None
    post_first_open_only: bool = False
    track_opens: bool = False
    track_links: TrackLinks = TrackLinks.NONE
    inbound_domain: str | None = None
    inbound_spam_threshold: int = 0

    @staticmethod
    def from_wire(data: Any) -> ServerResponse:
        t = "ServerResponse"
        data = _as_mapping(data, t)
        tokens = _required(data, "ApiTokens", list, t)
        if not all(isinstance(token, str) for token in tokens):
            raise DecodeError(f"{t}: field 'ApiTokens' must be a list of strings")
        server_id = _required(data, "ID", int, t)
        if server_id <= 0:
            raise DecodeError(f"{t}: field 'ID' must be greater than 0")
        return ServerResponse(
            id=server_id,
            name=_required(data, "Name", str, t),
            api_tokens=tuple(tokens),
            color=_required(data, "Color", str, t),
            smtp_api_activated=_required(data, "SmtpApiActivated", bool, t),
            raw_email_enabled=_required(data, "RawEmailEnabled", bool, t),
            server_link=_optional(data, "ServerLink", str, t, ""),
            delivery_hook_url=_optional(data, "DeliveryHookUrl", str, t),
            inbound_hook_url=_optional(data, "InboundHookUrl", str, t),
            bounce_hook_url=_optional(data, "BounceHookUrl", str, t),
            open_hook_url=_optional(data, "OpenHookUrl", str, t),
            post_first_open_only=_optional(data, "PostFirstOpenOnly", bool, t, False),
            track_opens=_optional(data, "TrackOpens", bool, t, False),
            track_links=_track_links(_optional(data, "TrackLinks", str, t), t),
            inbound_domain=_optional(data, "InboundDomain", str, t),
            inbound_spam_threshold=_optional(data, "InboundSpamThreshold", int, t, 0),
        )


# ---------------------------------------------------------------------------
# Sender signatures
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SenderData:
    """Payload for creating or updating a sender signature."""

    from_email: str
    name: str
    reply_to_email: str | None = None
    return_path_domain: str | None = None
    confirmation_personal_note: str | None = None

    @staticmethod
    def from_response(sender: SenderResponse) -> SenderData:
        return SenderData(
            from_email=sender.email_address,
            name=sender.name,
            reply_to_email=sender.reply_to_email_address or None,
            return_path_domain=sender.return_path_domain,
            confirmation_personal_note=sender.confirmation_personal_note,
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "FromEmail": self.from_email,
            "Name": self.name,
            "ReplyToEmail": self.reply_to_email,
            "ReturnPathDomain": self.return_path_domain,
            "ConfirmationPersonalNote": self.confirmation_personal_note,
        }


@dataclass(frozen=True, slots=True)
class SenderListResponse:
    """Reduced sender projection returned by the list endpoint."""

    id: int
    domain: str
    email_address: str
    reply_to_email_address: str
    name: str
    confirmed: bool

    @staticmethod
    def from_wire(data: Any) -> SenderListResponse:
        t = "SenderListResponse"
        data = _as_mapping(data, t)
        return SenderListResponse(
            id=_required(data, "ID", int, t),
            domain=_required(data, "Domain", str, t),
            email_address=_required(data, "EmailAddress", str, t),
            reply_to_email_address=_optional(data, "ReplyToEmailAddress", str, t, ""),
            name=_required(data, "Name", str, t),
            confirmed=_required(data, "Confirmed", bool, t),
        )


@dataclass(frozen=True, slots=True)
class SenderResponse:
    id: int
    domain: str
    email_address: str
    name: str
    confirmed: bool
    reply_to_email_address: str = ""
    spf_verified: bool = False
    spf_host: str | None = None
    spf_text_value: str | None = None
    dkim_verified: bool = False
    weak_dkim: bool = False
    dkim_host: str | None = None
    dkim_text_value: str | None = None
    dkim_pending_host: str | None = None
    dkim_pending_text_value: str | None = None
    dkim_revoked_host: str | None = None
    dkim_revoked_text_value: str | None = None
    safe_to_remove_revoked_key_from_dns: bool = False
    dkim_update_status: str | None = None
    return_path_domain: str | None = None
    return_path_domain_verified: bool = False
    return_path_domain_cname_value: str | None = None
    confirmation_personal_note: str | None = None

    @staticmethod
    def from_wire(data: Any) -> SenderResponse:
        t = "SenderResponse"
        data = _as_mapping(data, t)
        return SenderResponse(
            id=_required(data, "ID", int, t),
            domain=_required(data, "Domain", str, t),
            email_address=_required(data, "EmailAddress", str, t),
            name=_required(data, "Name", str, t),
            confirmed=_required(data, "Confirmed", bool, t),
            reply_to_email_address=_optional(data, "ReplyToEmailAddress", str, t, ""),
            spf_verified=_optional(data, "SPFVerified", bool, t, False),
            spf_host=_optional(data, "SPFHost", str, t),
            spf_text_value=_optional(data, "SPFTextValue", str, t),
            dkim_verified=_optional(data, "DKIMVerified", bool, t, False),
            weak_dkim=_optional(data, "WeakDKIM", bool, t, False),
            dkim_host=_optional(data, "DKIMHost", str, t),
            dkim_text_value=_optional(data, "DKIMTextValue", str, t),
            dkim_pending_host=_optional(data, "DKIMPendingHost", str, t),
            dkim_pending_text_value=_optional(data, "DKIMPendingTextValue", str, t),
            dkim_revoked_host=_optional(data, "DKIMRevokedHost", str, t),
            dkim_revoked_text_value=_optional(data, "DKIMRevokedTextValue", str, t),
            safe_to_remove_revoked_key_from_dns=_optional(
                data, "SafeToRemoveRevokedKeyFromDNS", bool, t, False
            ),
            dkim_update_status=_optional(data, "DKIMUpdateStatus", str, t),
            return_path_domain=_optional(data, "ReturnPathDomain", str, t) or None,
            return_path_domain_verified=_optional(data, "ReturnPathDomainVerified", bool, t, False),
            return_path_domain_cname_value=_optional(data, "ReturnPathDomainCNAMEValue", str, t),
            confirmation_personal_note=_optional(data, "ConfirmationPersonalNote", str, t),
        )


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeaderData:
    name: str
    value: str

    def to_wire(self) -> dict[str, str]:
        return {"Name": self.name, "Value": self.value}


@dataclass(frozen=True, slots=True)
class AttachmentData:
    """An attachment; ``content`` is already base64 encoded."""

    name: str
    content: str
    content_type: str
    content_id: str | None = None

    def to_wire(self) -> dict[str, str]:
        payload = {
            "Name": self.name,
            "Content": self.content,
            "ContentType": self.content_type,
        }
        if self.content_id:
            payload["ContentID"] = self.content_id
        return payload


@dataclass(frozen=True, slots=True)
class EmailData:
    """An outbound message.

    At least one of ``html_body`` and ``text_body`` must be given; the check
    runs at construction time. ``tag`` is limited to 1000 characters by the
    API but is not checked locally.
    """

    from_address: str
    to: str
    subject: str
    html_body: str | None = None
    text_body: str | None = None
    cc: str | None = None
    bcc: str | None = None
    reply_to: str | None = None
    headers: tuple[HeaderData, ...] = ()
    track_opens: bool = False
    track_links: TrackLinks | None = None
    attachments: tuple[AttachmentData, ...] = ()
    # Read-only view; left out of the hash since mappings are unhashable
    metadata: Mapping[str, str] = field(default_factory=dict, hash=False)
    message_stream: str | None = None
    tag: str | None = None

    def __post_init__(self) -> None:
        if self.html_body is None and self.text_body is None:
            raise InvalidArgumentError("Either html_body or text_body must be specified")
        # Accept lists from callers but keep the stored value immutable
        object.__setattr__(self, "headers", tuple(self.headers))
        object.__setattr__(self, "attachments", tuple(self.attachments))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_wire(self) -> dict[str, Any]:
        """Wire projection with every ``None`` field omitted."""
        return _drop_none(
            {
                "From": self.from_address,
                "To": self.to,
                "Subject": self.subject,
                "Cc": self.cc,
                "Bcc": self.bcc,
                "HtmlBody": self.html_body,
                "TextBody": self.text_body,
                "ReplyTo": self.reply_to,
                "Headers": [header.to_wire() for header in self.headers],
                "TrackOpens": self.track_opens,
                "TrackLinks": str(self.track_links) if self.track_links is not None else None,
                "Attachments": [attachment.to_wire() for attachment in self.attachments],
                "Metadata": dict(self.metadata),
                "MessageStream": self.message_stream,
                "Tag": self.tag,
            }
        )

    @staticmethod
    def from_wire(data: Any) -> EmailData:
        """Build a message from its wire format (e.g. a batch file entry)."""
        t = "EmailData"
        data = _as_mapping(data, t)
        headers = _optional(data, "Headers", list, t, [])
        attachments = _optional(data, "Attachments", list, t, [])
        track_links = _optional(data, "TrackLinks", str, t)
        return EmailData(
            from_address=_required(data, "From", str, t),
            to=_required(data, "To", str, t),
            subject=_required(data, "Subject", str, t),
            html_body=_optional(data, "HtmlBody", str, t),
            text_body=_optional(data, "TextBody", str, t),
            cc=_optional(data, "Cc", str, t),
            bcc=_optional(data, "Bcc", str, t),
            reply_to=_optional(data, "ReplyTo", str, t),
            headers=tuple(
                HeaderData(
                    name=_required(_as_mapping(h, "HeaderData"), "Name", str, "HeaderData"),
                    value=_required(h, "Value", str, "HeaderData"),
                )
                for h in headers
            ),
            track_opens=_optional(data, "TrackOpens", bool, t, False),
            track_links=_track_links(track_links, t) if track_links is not None else None,
            attachments=tuple(
                AttachmentData(
                    name=_required(_as_mapping(a, "AttachmentData"), "Name", str, "AttachmentData"),
                    content=_required(a, "Content", str, "AttachmentData"),
                    content_type=_required(a, "ContentType", str, "AttachmentData"),
                    content_id=_optional(a, "ContentID", str, "AttachmentData"),
                )
                for a in attachments
            ),
            metadata=_optional(data, "Metadata", dict, t, {}),
            message_stream=_optional(data, "MessageStream", str, t),
            tag=_optional(data, "Tag", str, t),
        )


@dataclass(frozen=True, slots=True)
class EmailResponse:
    to: str
    submitted_at: str
    message_id: str
    error_code: int
    message: str

    @property
    def is_success(self) -> bool:
        return self.error_code == 0

    @staticmethod
    def from_wire(data: Any) -> EmailResponse:
        t = "EmailResponse"
        data = _as_mapping(data, t)
        return EmailResponse(
            to=_required(data, "To", str, t),
            submitted_at=_required(data, "SubmittedAt", str, t),
            message_id=_required(data, "MessageID", str, t),
            error_code=_required(data, "ErrorCode", int, t),
            message=_required(data, "Message", str, t),
        )


@dataclass(frozen=True, slots=True)
class EmailBatchResponse:
    """Acknowledgement of a batch call.

    The top-level fields describe the batch outcome. When the API answers
    with one entry per message, those entries are kept in ``results`` and the
    top-level fields come from the first rejected entry, or from the first
    entry when nothing was rejected.
    """

    to: str | None
    submitted_at: str | None
    message_id: str | None
    error_code: int
    message: str
    results: tuple[EmailBatchResponse, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.error_code == 0

    @staticmethod
    def from_wire(data: Any) -> EmailBatchResponse:
        if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
            return EmailBatchResponse._from_entries(data)
        return EmailBatchResponse._from_entry(data)

    @staticmethod
    def _from_entry(data: Any) -> EmailBatchResponse:
        t = "EmailBatchResponse"
        data = _as_mapping(data, t)
        return EmailBatchResponse(
            to=_optional(data, "To", str, t),
            submitted_at=_optional(data, "SubmittedAt", str, t),
            message_id=_optional(data, "MessageID", str, t),
            error_code=_required(data, "ErrorCode", int, t),
            message=_required(data, "Message", str, t),
        )

    @staticmethod
    def _from_entries(entries: Sequence[Any]) -> EmailBatchResponse:
        results = tuple(EmailBatchResponse._from_entry(entry) for entry in entries)
        if not results:
            raise DecodeError("EmailBatchResponse: empty batch acknowledgement")
        head = next((r for r in results if not r.is_success), results[0])
        return EmailBatchResponse(
            to=head.to,
            submitted_at=head.submitted_at,
            message_id=head.message_id,
            error_code=head.error_code,
            message=head.message,
            results=results,
        )
