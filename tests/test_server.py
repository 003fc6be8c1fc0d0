import json
import logging

import httpx
import pytest

from fakes import server_payload
from postmark_cli.client import Postmark
from postmark_cli.client.errors import (
    DecodeError,
    ErrorKind,
    InvalidArgumentError,
    PostmarkConnectionError,
    PostmarkRuntimeError,
)
from postmark_cli.client.models import ServerData, ServerResponse


def listing(*servers):
    return {"TotalCount": len(servers), "Servers": list(servers)}


def test_all_sends_pagination_params(api, postmark):
    api.add("GET", "/servers", json_body=listing(server_payload()))

    servers = postmark.server().all(count=25, offset=50)

    assert [s.name for s in servers] == ["Staging"]
    params = api.requests[0].url.params
    assert params["count"] == "25"
    assert params["offset"] == "50"
    assert params["name"] == ""


def test_all_serves_repeat_calls_from_cache(api, postmark):
    api.add("GET", "/servers", json_body=listing(server_payload(), server_payload(ID=8)))

    first = postmark.server().all(10, 0)
    second = postmark.server().all(10, 0)

    assert first == second
    assert len(api.requests) == 1


def test_all_caches_per_page(api, postmark):
    api.add("GET", "/servers", json_body=listing(server_payload()))

    postmark.server().all(10, 0)
    postmark.server().all(10, 10)

    assert len(api.requests) == 2


def test_all_with_name_bypasses_cache(api, postmark):
    api.add("GET", "/servers", json_body=listing(server_payload()))
    servers = postmark.server()

    servers.all(10, 0)
    servers.all(10, 0, name="Stag")
    servers.all(10, 0, name="Stag")

    assert len(api.requests) == 3
    assert api.requests[1].url.params["name"] == "Stag"
    assert not postmark.server_cache.has(postmark.server_cache.generate_key(10, 0, "Stag"))


@pytest.mark.parametrize("count, offset", [(0, 0), (501, 0), (10, -1)])
def test_all_rejects_bad_pagination_without_calling_api(api, postmark, count, offset):
    with pytest.raises(InvalidArgumentError) as exc_info:
        postmark.server().all(count, offset)

    assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT
    assert api.requests == []


def test_all_accepts_bounds(api, postmark):
    api.add("GET", "/servers", json_body=listing())

    assert postmark.server().all(1, 0) == []
    assert postmark.server().all(500, 0) == []


def test_all_failure_is_not_cached(api, postmark):
    api.add("GET", "/servers", status=500, json_body={"ErrorCode": 1, "Message": "down"})

    with pytest.raises(PostmarkRuntimeError, match="Failed to retrieve servers"):
        postmark.server().all()

    api.add("GET", "/servers", json_body=listing(server_payload()))
    assert len(postmark.server().all()) == 1
    assert len(api.requests) == 2


def test_all_missing_array_is_runtime_error(api, postmark):
    api.add("GET", "/servers", json_body={"TotalCount": 0})

    with pytest.raises(PostmarkRuntimeError) as exc_info:
        postmark.server().all()

    assert isinstance(exc_info.value.__cause__, DecodeError)


def test_find_returns_server(api, postmark):
    api.add("GET", "/servers/7", json_body=server_payload(ApiTokens=["abc123"]))

    server = postmark.server().find(7)

    assert isinstance(server, ServerResponse)
    assert server.id == 7
    assert server.api_tokens == ("abc123",)


@pytest.mark.parametrize("server_id", [0, -3])
def test_find_rejects_non_positive_id(api, postmark, server_id):
    with pytest.raises(InvalidArgumentError, match="Server ID must be greater than 0"):
        postmark.server().find(server_id)
    assert api.requests == []


def test_find_error_carries_status_and_body(api, postmark):
    api.add("GET", "/servers/9", status=404, json_body={"ErrorCode": 603, "Message": "Server not found"})

    with pytest.raises(PostmarkRuntimeError) as exc_info:
        postmark.server().find(9)

    error = exc_info.value
    assert error.kind is ErrorKind.RUNTIME
    assert error.status_code == 404
    assert "Server not found" in str(error)
    assert "Server not found" in error.body


def test_find_invalid_json_is_runtime_error(api, postmark):
    api.add("GET", "/servers/7", text="<html>gateway</html>")

    with pytest.raises(PostmarkRuntimeError) as exc_info:
        postmark.server().find(7)

    assert isinstance(exc_info.value.__cause__, ValueError)


def test_find_rejects_non_positive_id_in_response(api, postmark):
    api.add("GET", "/servers/7", json_body=server_payload(ID=-3))

    with pytest.raises(PostmarkRuntimeError, match="greater than 0") as exc_info:
        postmark.server().find(7)

    assert isinstance(exc_info.value.__cause__, DecodeError)


def test_find_missing_field_is_runtime_error(api, postmark):
    payload = server_payload()
    del payload["Name"]
    api.add("GET", "/servers/7", json_body=payload)

    with pytest.raises(PostmarkRuntimeError, match="Name") as exc_info:
        postmark.server().find(7)

    assert isinstance(exc_info.value.__cause__, DecodeError)


def test_connection_failure_passes_through(api, postmark):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    api.add_handler("GET", "/servers/7", refuse)

    with pytest.raises(PostmarkConnectionError) as exc_info:
        postmark.server().find(7)

    assert exc_info.value.kind is ErrorKind.CONNECTION
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_failures_are_logged_with_identifiers(api, postmark, caplog):
    api.add("GET", "/servers/9", status=404, json_body={"ErrorCode": 603, "Message": "nope"})

    with caplog.at_level(logging.ERROR), pytest.raises(PostmarkRuntimeError):
        postmark.server().find(9)

    assert "Failed to find server (server_id=9)" in caplog.text
    assert "account-token" not in caplog.text


def test_get_token_returns_first_token(api, postmark):
    api.add("GET", "/servers/7", json_body=server_payload(ApiTokens=["abc123", "def456"]))

    assert postmark.server().get_token(7) == "abc123"


def test_get_token_without_tokens(api, postmark):
    api.add("GET", "/servers/7", json_body=server_payload(ApiTokens=[]))

    with pytest.raises(PostmarkRuntimeError, match="No API tokens found for server"):
        postmark.server().get_token(7)


def test_get_token_wraps_lookup_failures(api, postmark):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    api.add_handler("GET", "/servers/7", refuse)

    with pytest.raises(PostmarkRuntimeError, match="Failed to get server token") as exc_info:
        postmark.server().get_token(7)

    assert isinstance(exc_info.value.__cause__, PostmarkConnectionError)


def test_create_posts_wire_payload(api, postmark):
    api.add("POST", "/servers", json_body=server_payload(ID=11, Name="Production"))
    data = ServerData(name="Production", color="red", track_opens=False)

    server = postmark.server().create(data)

    assert server.id == 11
    request = api.requests[0]
    assert json.loads(request.content) == data.to_wire()
    assert request.headers["X-Postmark-Account-Token"] == "account-token"


def test_create_failure(api, postmark):
    api.add("POST", "/servers", status=422, json_body={"ErrorCode": 604, "Message": "Name taken"})

    with pytest.raises(PostmarkRuntimeError, match="Failed to create server: .*Name taken"):
        postmark.server().create(ServerData(name="Production"))


def test_update_puts_wire_payload(api, postmark):
    api.add("PUT", "/servers/7", json_body=server_payload(Name="Renamed"))
    data = ServerData(name="Renamed")

    assert postmark.server().update(7, data).name == "Renamed"
    assert json.loads(api.requests[0].content)["Name"] == "Renamed"


def test_update_rejects_non_positive_id(api, postmark):
    with pytest.raises(InvalidArgumentError):
        postmark.server().update(0, ServerData(name="x"))
    assert api.requests == []


def test_listing_is_not_invalidated_by_mutation(api, postmark):
    api.add("GET", "/servers", json_body=listing(server_payload()))
    api.add("POST", "/servers", json_body=server_payload(ID=11))
    servers = postmark.server()

    servers.all()
    servers.create(ServerData(name="New"))
    servers.all()

    assert len(api.calls("GET", "/servers")) == 1


def test_delete_reports_success(api, postmark):
    api.add("DELETE", "/servers/42", json_body={"ErrorCode": 0, "Message": "Server deleted."})

    assert postmark.server().delete(42) is True


def test_delete_reports_refusal_as_false(api, postmark):
    api.add("DELETE", "/servers/42", status=500, json_body={"ErrorCode": 1, "Message": "boom"})

    assert postmark.server().delete(42) is False


def test_delete_rejects_zero(api, postmark):
    with pytest.raises(InvalidArgumentError):
        postmark.server().delete(0)
    assert api.requests == []


def test_all_survives_failing_cache_store(api):
    class ReadOnlyStore:
        def get(self, key):
            return None

        def set(self, key, value, ttl):
            raise OSError("store offline")

        def has(self, key):
            return False

    api.add("GET", "/servers", json_body=listing(server_payload()))

    with Postmark(
        "https://api.test", "t", cache_store=ReadOnlyStore(), transport=httpx.MockTransport(api)
    ) as pm:
        servers = pm.server().all()

    assert [s.id for s in servers] == [7]
