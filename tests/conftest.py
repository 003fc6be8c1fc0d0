import httpx
import pytest

from fakes import FakePostmarkApi
from postmark_cli.client import Postmark
from postmark_cli.config import ENV_MAP

ENDPOINT = "https://api.postmark.test"
ACCOUNT_TOKEN = "account-token"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's POSTMARK_* variables out of the tests."""
    for name in [*ENV_MAP.values(), "POSTMARK_CONFIG"]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def api() -> FakePostmarkApi:
    return FakePostmarkApi()


@pytest.fixture
def postmark(api: FakePostmarkApi):
    client = Postmark(ENDPOINT, ACCOUNT_TOKEN, transport=httpx.MockTransport(api))
    yield client
    client.close()
