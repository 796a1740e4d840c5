"""Transport tests."""

import httpx
import pytest

from processprobe.config import ProbeConfig, RemoteConfig
from processprobe.contracts import IntegrationMock
from processprobe.errors import MissingContextError, RemoteCallError
from processprobe.transports import SimulatedFunctionClient, get_client
from processprobe.transports.http import HttpFunctionClient


@pytest.mark.asyncio
async def test_simulated_client_tracks_live_records():
    client = SimulatedFunctionClient()

    created = await client.invoke("hubspot-admin", {"action": "create_contact", "properties": {}})
    assert created.ok
    record_id = created.data["id"]
    assert f"hubspot:{record_id}" in client.live

    deleted = await client.invoke("hubspot-admin", {"action": "delete_contact", "record_id": record_id})
    assert deleted.ok
    assert client.live == {}

    again = await client.invoke("hubspot-admin", {"action": "delete_contact", "record_id": record_id})
    assert not again.ok
    assert "not found" in again.error.message


@pytest.mark.asyncio
async def test_scripted_failures_run_out():
    client = SimulatedFunctionClient()
    client.fail("slack-send-message", "slow down", times=1)

    first = await client.invoke("slack-send-message", {"channel": "C1"})
    second = await client.invoke("slack-send-message", {"channel": "C1"})

    assert first.error.message == "slow down"
    assert second.ok


@pytest.mark.asyncio
async def test_transient_failure_raises():
    client = SimulatedFunctionClient()
    client.fail("fathom-get-calls", "reset", transient=True)

    with pytest.raises(RemoteCallError) as exc_info:
        await client.invoke("fathom-get-calls", {})
    assert exc_info.value.transient


@pytest.mark.asyncio
async def test_mocks_do_not_intercept_deletes():
    client = SimulatedFunctionClient(
        mocks={"slack": IntegrationMock(integration="slack", mock_type="error")}
    )

    sent = await client.invoke("slack-send-message", {"channel": "C1"})
    assert not sent.ok

    client.live["slack:1.1"] = {"ts": "1.1"}
    deleted = await client.invoke("slack-delete-message", {"channel": "C1", "ts": "1.1"})
    assert deleted.ok


@pytest.mark.asyncio
async def test_success_mock_returns_canned_data_and_timeout_mock_raises():
    client = SimulatedFunctionClient()
    client.use_mocks(
        {
            "fathom": IntegrationMock(integration="fathom", response_data={"calls": [{"id": "c1"}]}),
            "justcall": IntegrationMock(integration="justcall", mock_type="timeout"),
        }
    )

    response = await client.invoke("fathom-get-calls", {})
    assert response.data == {"calls": [{"id": "c1"}]}
    with pytest.raises(RemoteCallError):
        await client.invoke("justcall-get-calls", {})


def test_get_client_selects_backend(monkeypatch):
    monkeypatch.delenv("PROCESSPROBE_REMOTE", raising=False)
    config = ProbeConfig(remote=RemoteConfig(backend="http", base_url="https://fn.example/functions/v1", api_key="k"))

    client = get_client(config=config)
    assert isinstance(client, HttpFunctionClient)
    assert client.base_url == "https://fn.example/functions/v1"
    assert isinstance(get_client("simulated", config), SimulatedFunctionClient)

    monkeypatch.setenv("PROCESSPROBE_REMOTE", "simulated")
    assert isinstance(get_client(config=config), SimulatedFunctionClient)


def test_http_backend_requires_base_url():
    with pytest.raises(MissingContextError):
        get_client("http", ProbeConfig())


def test_unknown_backend():
    with pytest.raises(ValueError):
        get_client("carrier-pigeon", ProbeConfig())


def _http_client(handler, api_key="secret"):
    client = HttpFunctionClient("https://fn.example/v1/", api_key=api_key)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


@pytest.mark.asyncio
async def test_http_client_posts_with_bearer_token():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"ok": True, "ts": "1.2"})

    client = _http_client(handler)
    response = await client.invoke("slack-send-message", {"channel": "C1"})
    await client.close()

    assert response.data == {"ok": True, "ts": "1.2"}
    assert seen == {
        "url": "https://fn.example/v1/slack-send-message",
        "auth": "Bearer secret",
    }


@pytest.mark.asyncio
async def test_http_client_maps_error_status():
    client = _http_client(lambda request: httpx.Response(403, json={"error": "forbidden"}))

    response = await client.invoke("hubspot-admin", {})
    assert response.error.message == "forbidden"
    assert response.error.status_code == 403


@pytest.mark.asyncio
async def test_http_client_transport_errors_are_transient():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _http_client(handler)
    with pytest.raises(RemoteCallError) as exc_info:
        await client.invoke("hubspot-admin", {})
    assert exc_info.value.transient


@pytest.mark.asyncio
async def test_http_client_requires_api_key():
    client = _http_client(lambda request: httpx.Response(200, json={}), api_key=None)

    with pytest.raises(MissingContextError):
        await client.invoke("hubspot-admin", {})
