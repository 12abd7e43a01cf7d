import json

import httpx
import pytest

from rosterwatch.core.api_client import ApiError, RosterApiClient


def make_client(handler):
    transport = httpx.MockTransport(handler)
    http = httpx.Client(transport=transport, base_url="http://detector.test/")
    return RosterApiClient("http://detector.test", client=http)


def test_get_roster_returns_parsed_json():
    seen = []

    def handler(request: httpx.Request):
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json=[{"name": "a"}])

    client = make_client(handler)
    assert client.get_roster() == [{"name": "a"}]
    assert seen == [("GET", "/players")]


def test_mutations_use_steam_id_paths_and_bodies():
    calls = []

    def handler(request: httpx.Request):
        body = json.loads(request.content) if request.content else None
        calls.append((request.method, request.url.path, body))
        return httpx.Response(204)

    client = make_client(handler)
    client.save_user_note(76561197960287930, "sus")
    client.add_whitelist(76561197960287930)
    client.remove_whitelist(76561197960287930)
    client.mark_player(76561197960287930, ["cheater", ""])
    client.save_user_settings({"steam_id": "x"})
    assert calls == [
        ("POST", "/notes/76561197960287930", {"note": "sus"}),
        ("POST", "/whitelist/76561197960287930", None),
        ("DELETE", "/whitelist/76561197960287930", None),
        ("POST", "/mark/76561197960287930", {"attrs": ["cheater"]}),
        ("POST", "/settings", {"steam_id": "x"}),
    ]


def test_mark_requires_attribute():
    client = make_client(lambda request: httpx.Response(204))
    with pytest.raises(ValueError):
        client.mark_player(1, [])


def test_error_status_raises_with_body():
    client = make_client(lambda request: httpx.Response(500, json={"error": "nope"}))
    with pytest.raises(ApiError) as exc:
        client.get_roster()
    assert exc.value.status_code == 500
    assert exc.value.body == {"error": "nope"}


def test_error_status_with_text_body():
    client = make_client(lambda request: httpx.Response(404, text="missing"))
    with pytest.raises(ApiError) as exc:
        client.get_user_settings()
    assert exc.value.body == "missing"


def test_malformed_json_raises():
    client = make_client(lambda request: httpx.Response(200, text="{oops"))
    with pytest.raises(ApiError):
        client.get_roster()


def test_transport_failure_wrapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = make_client(handler)
    with pytest.raises(ApiError) as exc:
        client.get_roster()
    assert isinstance(exc.value.__cause__, httpx.ConnectError)
    assert exc.value.status_code is None


def test_empty_body_returns_none():
    client = make_client(lambda request: httpx.Response(200, content=b""))
    assert client.get_user_settings() is None


def test_base_url_normalised():
    client = RosterApiClient("http://localhost:8900")
    try:
        assert client.base_url == "http://localhost:8900/"
    finally:
        client.close()
