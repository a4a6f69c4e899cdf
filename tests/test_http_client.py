import asyncio

import httpx
import pytest

from roledash.client.http import ApiClient, call_with_retries
from roledash.client.session import MemorySessionStore, Session
from roledash.errors import DashboardError, NetworkError, UnauthorizedError, ValidationError


def _client(handler, token="tok", **kwargs):
    session = Session(MemorySessionStore(token))
    api = ApiClient(session, "http://dash.test", transport=httpx.MockTransport(handler), **kwargs)
    return session, api


@pytest.mark.asyncio
async def test_unauthorized_invalidates_session():
    reasons = []
    session, api = _client(lambda request: httpx.Response(401, json={"detail": "Unauthorized"}))
    session.on_logout(reasons.append)

    with pytest.raises(UnauthorizedError):
        await api.request("GET", "/api/roles")
    assert not session.is_active
    assert reasons == ["Unauthorized"]

    with pytest.raises(UnauthorizedError, match="No authentication token available"):
        await api.request("GET", "/api/roles")


@pytest.mark.asyncio
async def test_transport_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    _, api = _client(handler)
    with pytest.raises(NetworkError):
        await api.request("GET", "/health")


@pytest.mark.asyncio
async def test_empty_and_bad_bodies():
    responses = iter([httpx.Response(204), httpx.Response(200, content=b"{nope")])
    _, api = _client(lambda request: next(responses))
    assert await api.request("DELETE", "/x") is None
    with pytest.raises(DashboardError, match="Bad JSON response"):
        await api.request("GET", "/x")


@pytest.mark.asyncio
async def test_validation_detail_list_joined():
    body = {"detail": [{"msg": "field required"}, {"msg": "value is not a valid boolean"}]}
    _, api = _client(lambda request: httpx.Response(422, json=body))
    with pytest.raises(ValidationError) as excinfo:
        await api.request("POST", "/x", json_body={})
    assert excinfo.value.status == 422
    assert excinfo.value.errors == ["field required", "value is not a valid boolean"]


@pytest.mark.asyncio
async def test_single_round_trip_by_default():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, json={"error": "Bot is not ready"})

    _, api = _client(handler)
    with pytest.raises(ValidationError, match="Bot is not ready"):
        await api.request("GET", "/x")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_errors_retried_when_enabled(monkeypatch):
    monkeypatch.setattr(asyncio, "sleep", _no_sleep)
    statuses = iter([502, 500, 200])
    _, api = _client(lambda request: httpx.Response(next(statuses), json={"ok": True}), retries=3)
    assert await api.request("GET", "/x") == {"ok": True}


@pytest.mark.asyncio
async def test_client_errors_not_retried(monkeypatch):
    monkeypatch.setattr(asyncio, "sleep", _no_sleep)
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": "bad"})

    _, api = _client(handler, retries=3)
    with pytest.raises(ValidationError):
        await api.request("GET", "/x")
    assert len(calls) == 1


async def _no_sleep(delay):
    return None


def test_call_with_retries_gives_up():
    calls = {"n": 0}

    async def fn():
        calls["n"] += 1
        raise NetworkError("offline")

    async def run():
        with pytest.raises(NetworkError):
            await call_with_retries(fn, retries=2, base_delay=0)

    asyncio.run(run())
    assert calls["n"] == 2
