"""Plain-text tables for CLI output."""

from collections.abc import Mapping, Sequence
from typing import Any

import click


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def format_table(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    """Format rows as aligned lines; headers come from the first row's keys."""
    if not rows:
        return []

    headers = list(rows[0].keys())
    cells = [[_cell(row.get(h)) for h in headers] for row in rows]
    widths = [max(len(h), *(len(r[i]) for r in cells)) for i, h in enumerate(headers)]

    def line(values: Sequence[str]) -> str:
        return "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    return [line(headers), line(["-" * w for w in widths]), *(line(r) for r in cells)]


def format_detail(details: Mapping[str, Any]) -> list[str]:
    """Format a key/value mapping as two aligned columns."""
    if not details:
        return []
    width = max(len(k) for k in details)
    return [f"{key.ljust(width)}  {_cell(value)}" for key, value in details.items()]


def echo_table(rows: Sequence[Mapping[str, Any]]) -> None:
    lines = format_table(rows)
    if not lines:
        click.echo("(none)")
        return
    click.echo(click.style(lines[0], bold=True))
    for text in lines[1:]:
        click.echo(text)


def echo_detail(details: Mapping[str, Any]) -> None:
    for text in format_detail(details):
        click.echo(text)
