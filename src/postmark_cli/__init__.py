"""Postmark CLI - manage servers and sender signatures, send email."""

from postmark_cli.client import Postmark
from postmark_cli.client.cache import CacheStore
from postmark_cli.config import Settings, load_settings

__version__ = "0.1.0"


def create_postmark(
    settings: Settings | None = None,
    cache_store: CacheStore | None = None,
) -> Postmark:
    """Build a Postmark client from settings (default: the environment)."""
    if settings is None:
        settings = load_settings()

    return Postmark(
        settings.endpoint,
        settings.account_token,
        timeout=settings.timeout,
        cache_store=cache_store,
    )
