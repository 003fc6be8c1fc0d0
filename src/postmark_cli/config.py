"""Configuration registry and type system.

Every configurable setting is declared here with its key, type, default,
description, and whether it contains a secret.  Values come from the
environment, then an optional INI file, then the registry default.
"""

import configparser
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class ConfigType(Enum):
    STRING = "string"
    INT = "int"


@dataclass(frozen=True, slots=True)
class ConfigEntry:
    key: str
    type: ConfigType
    default: str | int
    description: str
    secret: bool = False


# ---------------------------------------------------------------------------
# Registry -- every known setting
# ---------------------------------------------------------------------------

REGISTRY: list[ConfigEntry] = [
    # -- postmark --
    ConfigEntry(
        "postmark.endpoint",
        ConfigType.STRING,
        "https://api.postmarkapp.com",
        "Postmark API base URL",
    ),
    ConfigEntry(
        "postmark.account_token", ConfigType.STRING, "", "Account API token", secret=True
    ),
    ConfigEntry(
        "postmark.server_token", ConfigType.STRING, "", "Default server API token", secret=True
    ),
    ConfigEntry("postmark.from_email", ConfigType.STRING, "", "Default sender address"),
    ConfigEntry("postmark.reply_to_email", ConfigType.STRING, "", "Default reply-to address"),
    ConfigEntry(
        "postmark.return_path_domain", ConfigType.STRING, "", "Default return-path domain"
    ),
    # -- http --
    ConfigEntry("http.timeout", ConfigType.INT, 30, "HTTP timeout in seconds"),
    # -- log --
    ConfigEntry("log.level", ConfigType.STRING, "WARNING", "Log level"),
]

# Fast lookup by key
_REGISTRY_MAP: dict[str, ConfigEntry] = {e.key: e for e in REGISTRY}


def resolve_entry(key: str) -> ConfigEntry | None:
    """Look up a registry entry by key."""
    return _REGISTRY_MAP.get(key)


# ---------------------------------------------------------------------------
# Value parsing / serialization
# ---------------------------------------------------------------------------


def parse_value(entry: ConfigEntry, raw: str) -> str | int:
    """Parse a raw string value according to the entry's type."""
    match entry.type:
        case ConfigType.STRING:
            return raw
        case ConfigType.INT:
            return int(raw)


def serialize_value(entry: ConfigEntry, value: str | int) -> str:
    """Serialize a typed value to a string for display."""
    if entry.secret and value:
        return "********"
    return str(value)


# ---------------------------------------------------------------------------
# Mapping from registry keys to environment variables / Settings attributes
# ---------------------------------------------------------------------------

ENV_MAP: dict[str, str] = {
    "postmark.endpoint": "POSTMARK_ENDPOINT",
    "postmark.account_token": "POSTMARK_ACCOUNT_TOKEN",
    "postmark.server_token": "POSTMARK_SERVER_TOKEN",
    "postmark.from_email": "POSTMARK_FROM_EMAIL",
    "postmark.reply_to_email": "POSTMARK_REPLY_TO_EMAIL",
    "postmark.return_path_domain": "POSTMARK_RETURN_PATH_DOMAIN",
    "http.timeout": "POSTMARK_TIMEOUT",
    "log.level": "POSTMARK_LOG_LEVEL",
}

KEY_MAP: dict[str, str] = {
    "postmark.endpoint": "endpoint",
    "postmark.account_token": "account_token",
    "postmark.server_token": "server_token",
    "postmark.from_email": "from_email",
    "postmark.reply_to_email": "reply_to_email",
    "postmark.return_path_domain": "return_path_domain",
    "http.timeout": "timeout",
    "log.level": "log_level",
}


# ---------------------------------------------------------------------------
# INI section/key -> registry key mapping
# ---------------------------------------------------------------------------

INI_MAP: dict[tuple[str, str], str] = {
    ("postmark", "ENDPOINT"): "postmark.endpoint",
    ("postmark", "ACCOUNT_TOKEN"): "postmark.account_token",
    ("postmark", "SERVER_TOKEN"): "postmark.server_token",
    ("postmark", "FROM_EMAIL"): "postmark.from_email",
    ("postmark", "REPLY_TO_EMAIL"): "postmark.reply_to_email",
    ("postmark", "RETURN_PATH_DOMAIN"): "postmark.return_path_domain",
    ("http", "TIMEOUT"): "http.timeout",
    ("log", "LEVEL"): "log.level",
}


@dataclass(frozen=True, slots=True)
class ResolvedValue:
    entry: ConfigEntry
    value: str | int
    source: str  # "env", "ini" or "default"


@dataclass(frozen=True, slots=True)
class Settings:
    endpoint: str = "https://api.postmarkapp.com"
    account_token: str = ""
    server_token: str = ""
    from_email: str = ""
    reply_to_email: str = ""
    return_path_domain: str = ""
    timeout: int = 30
    log_level: str = "WARNING"


def _read_ini(ini_file: str) -> dict[str, str]:
    """Read an INI file into a registry-key -> raw value dict."""
    cfg = configparser.ConfigParser()
    if not cfg.read(ini_file):
        raise FileNotFoundError(f"Config file not found: {ini_file}")

    values: dict[str, str] = {}
    for section in cfg.sections():
        for ini_key, value in cfg.items(section):
            registry_key = INI_MAP.get((section, ini_key.upper()))
            if registry_key is not None:
                values[registry_key] = value
    return values


def resolve_values(
    environ: Mapping[str, str] | None = None,
    ini_file: str | None = None,
) -> list[ResolvedValue]:
    """Resolve every registry entry to its effective value and source.

    Raises ValueError when a raw value cannot be parsed for its type.
    """
    env = os.environ if environ is None else environ
    ini_values = _read_ini(ini_file) if ini_file else {}

    resolved = []
    for entry in REGISTRY:
        raw = env.get(ENV_MAP[entry.key])
        if raw:
            source = "env"
        elif entry.key in ini_values:
            raw = ini_values[entry.key]
            source = "ini"
        else:
            resolved.append(ResolvedValue(entry, entry.default, "default"))
            continue

        try:
            value = parse_value(entry, raw)
        except ValueError as exc:
            raise ValueError(f"Invalid value for {entry.key} ({entry.type.value}): {exc}") from exc
        resolved.append(ResolvedValue(entry, value, source))
    return resolved


def load_settings(
    environ: Mapping[str, str] | None = None,
    ini_file: str | None = None,
) -> Settings:
    """Build Settings from the environment and an optional INI file."""
    values = {
        KEY_MAP[item.entry.key]: item.value for item in resolve_values(environ, ini_file)
    }
    return Settings(**values)
