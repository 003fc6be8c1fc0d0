"""CLI entry point for postmark."""

import dataclasses
import json
import logging
import sys
from collections.abc import Callable
from functools import wraps
from typing import Any, NoReturn

import click

from postmark_cli.client import (
    EmailBatchResponse,
    EmailData,
    EmailResponse,
    HeaderData,
    InvalidArgumentError,
    Postmark,
    PostmarkConnectionError,
    PostmarkRuntimeError,
    SenderData,
    SenderResponse,
    ServerColor,
    ServerData,
    ServerResponse,
    TrackLinks,
)
from postmark_cli.client.email import EmailClient
from postmark_cli.config import (
    Settings,
    load_settings,
    resolve_entry,
    resolve_values,
    serialize_value,
)
from postmark_cli.services.attachments import load_attachment
from postmark_cli.services.content import default_test_content, markdown_bodies
from postmark_cli.services.tables import echo_detail, echo_table

log = logging.getLogger("postmark_cli.cli")

MASK = "*****"


def _make_postmark(settings: Settings) -> Postmark:
    """Create the API client for commands that talk to Postmark."""
    from postmark_cli import create_postmark

    return create_postmark(settings)


class _State:
    """Per-invocation settings and a lazily created Postmark client."""

    def __init__(self, settings: Settings, config_file: str | None) -> None:
        self.settings = settings
        self.config_file = config_file
        self._postmark: Postmark | None = None

    @property
    def postmark(self) -> Postmark:
        if self._postmark is None:
            self._postmark = _make_postmark(self.settings)
        return self._postmark

    def close(self) -> None:
        if self._postmark is not None:
            self._postmark.close()


# ---------------------------------------------------------------------------
# Error presentation
# ---------------------------------------------------------------------------


def _fail(message: str) -> NoReturn:
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(1)


def handle_errors(f: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator: turn client errors into a one-line message and exit code 1."""

    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except (click.ClickException, click.Abort, click.exceptions.Exit):
            raise
        except InvalidArgumentError as exc:
            _fail(f"Invalid input: {exc}")
        except PostmarkConnectionError as exc:
            _fail(f"Connection error: {exc}")
        except PostmarkRuntimeError as exc:
            _fail(f"API error: {exc}")
        except (ValueError, OSError) as exc:
            _fail(f"Invalid input: {exc}")
        except Exception as exc:
            log.debug("Unexpected error", exc_info=True)
            _fail(f"Unexpected error: {exc}")

    return decorated


def _configure_logging(settings: Settings, verbose: int) -> None:
    if verbose >= 2:
        level: int | str = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _changes(**options: Any) -> dict[str, Any]:
    """Keep only the options that were given on the command line."""
    return {key: value for key, value in options.items() if value is not None}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    envvar="POSTMARK_CONFIG",
    help="INI file with [postmark], [http] and [log] sections",
)
@click.option("-v", "--verbose", count=True, help="Log more (-vv for debug)")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, verbose: int):
    """Manage Postmark servers and sender signatures, and send email."""
    try:
        settings = load_settings(ini_file=config_file)
        _configure_logging(settings, verbose)
    except (ValueError, OSError) as exc:
        _fail(f"Invalid configuration: {exc}")

    state = _State(settings, config_file)
    ctx.obj = state
    ctx.call_on_close(state.close)


# ---- config group --------------------------------------------------------


@main.group()
def config():
    """View configuration settings."""


@config.command("list")
@click.pass_obj
@handle_errors
def config_list(state: _State):
    """Show all settings with their effective values."""
    current_group = ""
    for item in resolve_values(ini_file=state.config_file):
        entry = item.entry
        group = entry.key.split(".")[0]
        if group != current_group:
            if current_group:
                click.echo()
            click.echo(click.style(f"[{group}]", bold=True))
            current_group = group

        display = serialize_value(entry, item.value) or "(empty)"
        color = {"env": "cyan", "ini": "green"}.get(item.source, "yellow")
        source_tag = click.style(f"[{item.source}]", fg=color)
        click.echo(f"  {entry.key} = {display}  {source_tag}")
        click.echo(click.style(f"    {entry.description}", dim=True))


@config.command("get")
@click.argument("key")
@click.pass_obj
@handle_errors
def config_get(state: _State, key: str):
    """Get the effective value of a setting."""
    entry = resolve_entry(key)
    if not entry:
        click.echo(f"Unknown setting: {key}", err=True)
        sys.exit(1)
    assert entry is not None

    item = next(i for i in resolve_values(ini_file=state.config_file) if i.entry is entry)
    click.echo(serialize_value(entry, item.value) or "(empty)")


# ---- server group --------------------------------------------------------


def _server_row(server: ServerResponse) -> dict[str, Any]:
    return {
        "ID": server.id,
        "Name": server.name,
        "API Tokens": MASK,
        "Color": server.color,
        "SMTP API": "Enabled" if server.smtp_api_activated else "Disabled",
        "Raw Email": "Enabled" if server.raw_email_enabled else "Disabled",
        "Track Opens": "Enabled" if server.track_opens else "Disabled",
        "Track Links": str(server.track_links),
        "Spam Threshold": server.inbound_spam_threshold,
        "Server Link": server.server_link,
    }


def _server_details(server: ServerResponse) -> dict[str, Any]:
    return {
        "ID": server.id,
        "Name": server.name,
        "API Tokens": MASK,
        "Color": server.color,
        "SMTP API": "Enabled" if server.smtp_api_activated else "Disabled",
        "Raw Email": "Enabled" if server.raw_email_enabled else "Disabled",
        "Delivery Hook URL": server.delivery_hook_url or "Not set",
        "Inbound Hook URL": server.inbound_hook_url or "Not set",
        "Bounce Hook URL": server.bounce_hook_url or "Not set",
        "Open Hook URL": server.open_hook_url or "Not set",
        "Post First Open Only": server.post_first_open_only,
        "Track Opens": "Enabled" if server.track_opens else "Disabled",
        "Track Links": str(server.track_links),
        "Inbound Domain": server.inbound_domain or "Not set",
        "Spam Threshold": server.inbound_spam_threshold,
        "Server Link": server.server_link,
    }


def server_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by ``server new`` and ``server edit``."""
    options = [
        click.option("--name", help="Server name"),
        click.option(
            "--color",
            type=click.Choice([c.value for c in ServerColor]),
            help="Color for quick identification",
        ),
        click.option("--smtp-api", "smtp_api_activated", type=click.BOOL, help="Enable SMTP"),
        click.option(
            "--raw-email", "raw_email_enabled", type=click.BOOL, help="Raw content in webhooks"
        ),
        click.option(
            "--post-first-open-only",
            type=click.BOOL,
            help="Only trigger the open webhook for the first open",
        ),
        click.option("--track-opens", type=click.BOOL, help="Enable open tracking"),
        click.option(
            "--track-links",
            type=click.Choice([t.value for t in TrackLinks]),
            help="Link tracking mode",
        ),
        click.option(
            "--spam-threshold",
            "inbound_spam_threshold",
            type=click.IntRange(0, 30),
            help="Maximum inbound spam score (0-30)",
        ),
        click.option("--delivery-hook-url", help="Webhook URL for delivery events"),
        click.option("--inbound-hook-url", help="Webhook URL for inbound events"),
        click.option("--bounce-hook-url", help="Webhook URL for bounce events"),
        click.option("--open-hook-url", help="Webhook URL for open events"),
        click.option("--inbound-domain", help="Domain for inbound email"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _apply_server_options(base: ServerData, options: dict[str, Any]) -> ServerData:
    changes = _changes(**options)
    if "track_links" in changes:
        changes["track_links"] = TrackLinks(changes["track_links"])
    return dataclasses.replace(base, **changes)


@main.group()
def server():
    """Manage the servers of your account."""


@server.command("list")
@click.option("--count", default=10, show_default=True, help="Servers per page (1-500)")
@click.option("--offset", default=0, show_default=True, help="Servers to skip")
@click.option("--name", default="", help="Filter by name")
@click.pass_obj
@handle_errors
def server_list(state: _State, count: int, offset: int, name: str):
    """List servers."""
    servers = state.postmark.server().all(count=count, offset=offset, name=name)
    echo_table([_server_row(s) for s in servers])


@server.command("show")
@click.argument("server_id", type=int)
@click.pass_obj
@handle_errors
def server_show(state: _State, server_id: int):
    """Show the details of a server."""
    echo_detail(_server_details(state.postmark.server().find(server_id)))


@server.command("new")
@server_options
@click.pass_obj
@handle_errors
def server_new(state: _State, **options: Any):
    """Create a server."""
    if not options.get("name"):
        raise click.UsageError("--name is required")

    data = _apply_server_options(ServerData(name=options["name"]), options)
    created = state.postmark.server().create(data)
    click.echo("Server created successfully!")
    echo_detail(_server_details(created))


@server.command("edit")
@click.argument("server_id", type=int)
@server_options
@click.pass_obj
@handle_errors
def server_edit(state: _State, server_id: int, **options: Any):
    """Update a server; options not given keep their current value."""
    client = state.postmark.server()
    current = client.find(server_id)
    data = _apply_server_options(ServerData.from_response(current), options)
    updated = client.update(server_id, data)
    click.echo("Server updated successfully!")
    echo_detail(_server_details(updated))


@server.command("delete")
@click.argument("server_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
@handle_errors
def server_delete(state: _State, server_id: int, yes: bool):
    """Delete a server."""
    client = state.postmark.server()
    echo_detail(_server_details(client.find(server_id)))

    if not yes and not click.confirm(
        f"Deleting server {server_id} cannot be undone and any email sent through it "
        "will be rejected. Continue?"
    ):
        return

    if not client.delete(server_id):
        raise PostmarkRuntimeError("Failed to delete server")
    click.echo("Server deleted successfully!")


@server.command("token")
@click.argument("server_id", type=int)
@click.option("--reveal", is_flag=True, help="Print the token instead of a mask")
@click.pass_obj
@handle_errors
def server_token(state: _State, server_id: int, reveal: bool):
    """Show the first API token of a server."""
    token = state.postmark.server().get_token(server_id)
    click.echo(token if reveal else MASK)


# ---- sender group --------------------------------------------------------


def _sender_details(sender: SenderResponse) -> dict[str, Any]:
    return {
        "ID": sender.id,
        "Name": sender.name,
        "Email": sender.email_address,
        "Reply To": sender.reply_to_email_address or "Not set",
        "Domain": sender.domain,
        "Confirmed": sender.confirmed,
        "SPF Verified": sender.spf_verified,
        "DKIM Verified": sender.dkim_verified,
        "DKIM Host": sender.dkim_host or sender.dkim_pending_host or "",
        "DKIM Value": sender.dkim_text_value or sender.dkim_pending_text_value or "",
        "DKIM Update Status": sender.dkim_update_status or "",
        "Return Path Domain": sender.return_path_domain or "Not set",
        "Return Path Verified": sender.return_path_domain_verified,
        "Return Path CNAME": sender.return_path_domain_cname_value or "",
    }


def sender_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by ``sender new`` and ``sender edit``."""
    options = [
        click.option("--from-email", help="Sender email address"),
        click.option("--name", help="Display name"),
        click.option("--reply-to", "reply_to_email", help="Reply-to address"),
        click.option("--return-path-domain", help="Custom return-path domain"),
        click.option("--note", "confirmation_personal_note", help="Note in the confirmation email"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


@main.group()
def sender():
    """Manage the sender signatures of your account."""


@sender.command("list")
@click.option("--count", default=100, show_default=True, help="Senders per page (1-500)")
@click.option("--offset", default=0, show_default=True, help="Senders to skip")
@click.pass_obj
@handle_errors
def sender_list(state: _State, count: int, offset: int):
    """List sender signatures."""
    senders = state.postmark.sender().all(count=count, offset=offset)
    echo_table(
        [
            {
                "ID": s.id,
                "Name": s.name,
                "Email": s.email_address,
                "Reply To": s.reply_to_email_address,
                "Domain": s.domain,
                "Confirmed": s.confirmed,
            }
            for s in senders
        ]
    )


@sender.command("show")
@click.argument("sender_id", type=int)
@click.pass_obj
@handle_errors
def sender_show(state: _State, sender_id: int):
    """Show the details of a sender signature."""
    echo_detail(_sender_details(state.postmark.sender().find(sender_id)))


@sender.command("new")
@sender_options
@click.pass_obj
@handle_errors
def sender_new(state: _State, **options: Any):
    """Create a sender signature; defaults come from configuration."""
    if not options.get("from_email") or not options.get("name"):
        raise click.UsageError("--from-email and --name are required")

    settings = state.settings
    base = SenderData(
        from_email=options["from_email"],
        name=options["name"],
        reply_to_email=settings.reply_to_email or None,
        return_path_domain=settings.return_path_domain or None,
    )
    created = state.postmark.sender().create(dataclasses.replace(base, **_changes(**options)))
    click.echo("Sender created successfully!")
    echo_detail(_sender_details(created))


@sender.command("edit")
@click.argument("sender_id", type=int)
@sender_options
@click.pass_obj
@handle_errors
def sender_edit(state: _State, sender_id: int, **options: Any):
    """Update a sender signature; options not given keep their current value."""
    client = state.postmark.sender()
    current = client.find(sender_id)
    data = dataclasses.replace(SenderData.from_response(current), **_changes(**options))
    updated = client.update(sender_id, data)
    click.echo("Sender updated successfully!")
    echo_detail(_sender_details(updated))


@sender.command("delete")
@click.argument("sender_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
@handle_errors
def sender_delete(state: _State, sender_id: int, yes: bool):
    """Delete a sender signature."""
    client = state.postmark.sender()
    echo_detail(_sender_details(client.find(sender_id)))

    if not yes and not click.confirm(f"Delete sender {sender_id}?"):
        return

    if not client.delete(sender_id):
        raise PostmarkRuntimeError("Failed to delete sender")
    click.echo("Sender deleted successfully!")


# ---- email group ---------------------------------------------------------


def _parse_headers(values: tuple[str, ...]) -> tuple[HeaderData, ...]:
    headers = []
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME:VALUE, got {value!r}", param_hint="--header")
        headers.append(HeaderData(name=name.strip(), value=content.strip()))
    return tuple(headers)


def _parse_metadata(values: tuple[str, ...]) -> dict[str, str]:
    metadata = {}
    for value in values:
        key, sep, content = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint="--metadata")
        metadata[key] = content
    return metadata


def _email_client(
    state: _State, server_id: int | None, server_token: str | None
) -> EmailClient:
    """Email client authenticated by --server-id, --server-token or the configured token."""
    client = state.postmark.email()
    if server_id is not None:
        client.with_server(server_id)
    if server_token or (server_id is None and state.settings.server_token):
        client.with_server_token(server_token or state.settings.server_token)
    return client


def _echo_email_response(response: EmailResponse | EmailBatchResponse) -> None:
    echo_detail(
        {
            "ID": response.message_id,
            "To": response.to,
            "Submitted At": response.submitted_at,
            "Error Code": response.error_code,
            "Message": response.message,
        }
    )


def auth_options(f: Callable[..., Any]) -> Callable[..., Any]:
    f = click.option("--server-token", help="Send with this server token")(f)
    f = click.option("--server-id", type=int, help="Send through this server (token looked up)")(f)
    return f


@main.group()
def email():
    """Send email."""


@email.command("send")
@click.option("--from", "from_address", help="Sender address [default: configured from_email]")
@click.option("--to", required=True, help="Recipient address(es), comma separated")
@click.option("--subject", required=True)
@click.option("--text-body")
@click.option("--html-body")
@click.option("--markdown-body", help="Markdown source; sent as text and rendered HTML")
@click.option("--default-content", is_flag=True, help="Use the built-in test email body")
@click.option("--cc")
@click.option("--bcc")
@click.option("--reply-to", help="Reply-to address [default: configured reply_to_email]")
@click.option("--tag")
@click.option("--stream", "message_stream", help="Message stream ID")
@click.option("--header", "headers", multiple=True, help="NAME:VALUE, repeatable")
@click.option("--metadata", multiple=True, help="KEY=VALUE, repeatable")
@click.option(
    "--attach", "attachments", multiple=True, type=click.Path(exists=True, dir_okay=False)
)
@click.option("--track-opens", is_flag=True)
@click.option("--track-links", type=click.Choice([t.value for t in TrackLinks]))
@click.option("--template-id", type=int, help="Send with this template")
@auth_options
@click.pass_obj
@handle_errors
def email_send(
    state: _State,
    from_address: str | None,
    to: str,
    subject: str,
    text_body: str | None,
    html_body: str | None,
    markdown_body: str | None,
    default_content: bool,
    cc: str | None,
    bcc: str | None,
    reply_to: str | None,
    tag: str | None,
    message_stream: str | None,
    headers: tuple[str, ...],
    metadata: tuple[str, ...],
    attachments: tuple[str, ...],
    track_opens: bool,
    track_links: str | None,
    template_id: int | None,
    server_id: int | None,
    server_token: str | None,
):
    """Send one email."""
    from_address = from_address or state.settings.from_email
    if not from_address:
        raise click.UsageError("--from is required when no from_email is configured")

    if default_content:
        text_body, html_body = default_test_content()
    elif markdown_body is not None:
        text_body, html_body = markdown_bodies(markdown_body)

    data = EmailData(
        from_address=from_address,
        to=to,
        subject=subject,
        html_body=html_body,
        text_body=text_body,
        cc=cc,
        bcc=bcc,
        reply_to=reply_to or state.settings.reply_to_email or None,
        headers=_parse_headers(headers),
        track_opens=track_opens,
        track_links=TrackLinks(track_links) if track_links else None,
        attachments=tuple(load_attachment(path) for path in attachments),
        metadata=_parse_metadata(metadata),
        message_stream=message_stream,
        tag=tag,
    )

    client = _email_client(state, server_id, server_token)
    if template_id is not None:
        response = client.send_with_template(template_id, data)
    else:
        response = client.send(data)

    click.echo("Email sent successfully!")
    _echo_email_response(response)


@email.command("batch")
@click.argument("messages_file", type=click.File("r"))
@click.option("--template-id", type=int, help="Send every message with this template")
@auth_options
@click.pass_obj
@handle_errors
def email_batch(
    state: _State,
    messages_file: Any,
    template_id: int | None,
    server_id: int | None,
    server_token: str | None,
):
    """Send a JSON array of messages (Postmark wire format) in one call."""
    raw = json.load(messages_file)
    if not isinstance(raw, list) or not raw:
        raise click.BadParameter("expected a non-empty JSON array", param_hint="MESSAGES_FILE")
    messages = [EmailData.from_wire(item) for item in raw]

    client = _email_client(state, server_id, server_token)
    if template_id is not None:
        response = client.send_batch_with_template(template_id, messages)
    else:
        response = client.send_batch(messages)

    click.echo(f"Batch of {len(messages)} message(s) submitted.")
    if response.results:
        echo_table(
            [
                {
                    "To": r.to,
                    "ID": r.message_id,
                    "Error Code": r.error_code,
                    "Message": r.message,
                }
                for r in response.results
            ]
        )
    else:
        _echo_email_response(response)
