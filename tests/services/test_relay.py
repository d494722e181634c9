import hashlib
import json

import httpx
import pytest
from jose import jwt

from chorus_governance.schemas.event import EventDraft
from chorus_governance.services.relay import (
    FailureGate,
    RelayDisabledError,
    RelayGatewayClient,
    RelayGatewayConfig,
    RelayRejectedError,
    RelayUnavailableError,
)

SECRET = "s3cret"


def _config(**overrides) -> RelayGatewayConfig:
    values = {
        "enabled": True,
        "base_url": "https://gateway.test",
        "client_id": "governance-test",
        "shared_secret": SECRET,
        "audience": "relay-gateway",
        "token_ttl_seconds": 60,
        "timeout_seconds": 5.0,
        "pull_limit": 50,
        "mtls_enabled": False,
        "client_cert": None,
        "client_key": None,
        "ca_cert": None,
    }
    values.update(overrides)
    return RelayGatewayConfig(**values)


def _client_with(handler) -> RelayGatewayClient:
    return RelayGatewayClient(_config(), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_pull_events_posts_filters_and_skips_malformed():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "cursor": "c2",
                "events": [
                    {"id": "e1", "pubkey": "alice", "created_at": 1, "kind": 34550, "tags": [["d", "club"]]},
                    {"pubkey": "alice", "kind": 34550},
                ],
            },
        )

    client = _client_with(handler)
    batch = await client.pull_events([{"kinds": [34550]}], cursor="c1")
    await client.close()

    assert batch.cursor == "c2"
    assert [event.id for event in batch.events] == ["e1"]
    request = seen[0]
    assert request.url.path == "/api/relay/stream"
    assert json.loads(request.content) == {"filters": [{"kinds": [34550]}], "limit": 50, "cursor": "c1"}
    assert request.headers["X-Relay-Client-Id"] == "governance-test"
    token = request.headers["Authorization"].removeprefix("Bearer ")
    claims = jwt.decode(token, SECRET, algorithms=["HS256"], audience="relay-gateway")
    assert claims["iss"] == "governance-test"


@pytest.mark.asyncio
async def test_publish_event_returns_id_with_idempotency_key():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, json={"id": "published"})

    draft = EventDraft(kind=34550, tags=[["d", "club"]], content="{}", created_at=10)
    client = _client_with(handler)

    assert await client.publish_event(draft) == "published"
    assert seen[0].url.path == "/api/relay/publish"
    expected_key = hashlib.sha256(draft.model_dump_json().encode()).hexdigest()
    assert seen[0].headers["Idempotency-Key"] == expected_key


@pytest.mark.asyncio
async def test_publish_without_relay_acceptance_returns_none():
    client = _client_with(lambda request: httpx.Response(202, json={"id": None}))

    assert await client.publish_event(EventDraft(kind=34550, content="{}", created_at=10)) is None


@pytest.mark.asyncio
async def test_refused_publish_raises_rejected():
    client = _client_with(lambda request: httpx.Response(409, json={"error": "rejected"}))

    with pytest.raises(RelayRejectedError) as excinfo:
        await client.publish_event(EventDraft(kind=34550, content="{}", created_at=10))

    assert excinfo.value.status_code == 409
    assert excinfo.value.path == "/api/relay/publish"
    metrics = client.get_metrics()
    assert metrics["rejections"] == 1
    assert metrics["failures"] == 0
    assert metrics["circuit_breaker"]["consecutive_failures"] == 0


@pytest.mark.asyncio
async def test_server_errors_raise_and_are_counted():
    client = _client_with(lambda request: httpx.Response(503))

    with pytest.raises(RelayUnavailableError):
        await client.pull_events([{"kinds": [34550]}])

    metrics = client.get_metrics()
    assert metrics["requests"] == 1
    assert metrics["failures"] == 1
    assert metrics["last_error"] == "http_503"


@pytest.mark.asyncio
async def test_network_errors_raise_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client_with(handler)

    with pytest.raises(RelayUnavailableError, match="connection refused"):
        await client.pull_events([{"kinds": [34550]}])
    assert client.get_metrics()["last_error"] == "ConnectError"


@pytest.mark.asyncio
async def test_gate_pauses_calls_after_repeated_failures():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    client = _client_with(handler)
    for _ in range(5):
        with pytest.raises(RelayUnavailableError):
            await client.pull_events([{"kinds": [34550]}])

    with pytest.raises(RelayUnavailableError, match="paused after 5 consecutive failures"):
        await client.pull_events([{"kinds": [34550]}])
    assert len(calls) == 5
    assert client.get_metrics()["circuit_breaker"]["state"] == "open"


def test_gate_allows_one_trial_after_cooldown():
    gate = FailureGate(threshold=2, cooldown_seconds=10.0)
    gate.failed(0.0)
    gate.failed(1.0)

    assert not gate.allows(5.0)
    assert gate.allows(11.0)

    gate.failed(11.5)
    assert not gate.allows(12.0)

    assert gate.allows(22.0)
    gate.succeeded()
    assert gate.status(22.0) == {"state": "closed", "consecutive_failures": 0}


@pytest.mark.asyncio
async def test_health_check_reports_status():
    client = _client_with(lambda request: httpx.Response(200, json={"ok": True}))

    health = await client.health_check()

    assert health["status"] == "healthy"
    assert health["circuit_breaker"]["state"] == "closed"
    assert health["response_time_ms"] is not None


@pytest.mark.asyncio
async def test_health_check_reports_gateway_failure():
    client = _client_with(lambda request: httpx.Response(502))

    health = await client.health_check()

    assert health["status"] == "error"
    assert "502" in health["error"]


@pytest.mark.asyncio
async def test_disabled_client_refuses_operations():
    client = RelayGatewayClient(_config(enabled=False))

    assert not client.enabled
    with pytest.raises(RelayDisabledError):
        await client.pull_events([])
    with pytest.raises(RelayDisabledError):
        await client.publish_event(EventDraft(kind=34550, created_at=1))
    assert (await client.health_check())["status"] == "disabled"
