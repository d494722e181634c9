"""Relay gateway client.

The gateway fronts the relay pool: it fans subscription filters out to every
relay, returns the merged stream in cursor-addressed batches, and signs and
broadcasts drafts on our behalf.

Every call goes through ``RelayGatewayClient._send``, which attaches a
short-lived bearer token, records the outcome in ``GatewayStats`` and consults
a ``FailureGate`` that stops calling the gateway for a while after repeated
failures.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import secrets
import time
from dataclasses import asdict, dataclass
from typing import Any

import httpx
from jose import jwt
from pydantic import ValidationError

from chorus_governance.core.settings import settings
from chorus_governance.schemas.event import EventDraft, RelayEvent

logger = logging.getLogger(__name__)

STREAM_PATH = "/api/relay/stream"
PUBLISH_PATH = "/api/relay/publish"
HEALTH_PATH = "/health"


class RelayError(RuntimeError):
    """Base exception raised for relay gateway failures."""


class RelayDisabledError(RelayError):
    """Raised when gateway operations are attempted while the integration is disabled."""


class RelayUnavailableError(RelayError):
    """The gateway could not be reached, failed with a 5xx, or is paused after repeated failures."""


class RelayRejectedError(RelayError):
    """The gateway answered but refused the request."""

    def __init__(self, path: str, status_code: int, detail: str = "") -> None:
        message = f"Relay gateway rejected {path} with {status_code}"
        if detail:
            message = f"{message}: {detail[:200]}"
        super().__init__(message)
        self.path = path
        self.status_code = status_code


@dataclass
class GatewayStats:
    """Running counters for gateway calls, exposed by the system endpoints."""

    requests: int = 0
    failures: int = 0
    rejections: int = 0
    last_latency_ms: float | None = None
    last_error: str | None = None

    def record(self, latency_ms: float, error: str | None = None, *, rejected: bool = False) -> None:
        self.requests += 1
        self.last_latency_ms = latency_ms
        if error is None:
            return
        self.last_error = error
        if rejected:
            self.rejections += 1
        else:
            self.failures += 1

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FailureGate:
    """Stops gateway calls for ``cooldown_seconds`` after ``threshold`` failures in a row.

    Once the cooldown has passed one call is let through; if it fails too the
    gate closes again straight away.
    """

    threshold: int = 5
    cooldown_seconds: float = 60.0
    failures: int = 0
    opened_at: float | None = None

    def allows(self, now: float) -> bool:
        if self.opened_at is None:
            return True
        if now - self.opened_at < self.cooldown_seconds:
            return False
        self.opened_at = None
        self.failures = self.threshold - 1
        return True

    def succeeded(self) -> None:
        self.failures = 0
        self.opened_at = None

    def failed(self, now: float) -> None:
        self.failures += 1
        if self.failures >= self.threshold and self.opened_at is None:
            self.opened_at = now
            logger.warning(
                "Relay gateway failed %d times in a row; pausing calls for %.0fs",
                self.failures,
                self.cooldown_seconds,
            )

    def status(self, now: float) -> dict[str, Any]:
        paused = self.opened_at is not None and now - self.opened_at < self.cooldown_seconds
        return {"state": "open" if paused else "closed", "consecutive_failures": self.failures}


@dataclass(frozen=True)
class RelayGatewayConfig:
    """Immutable configuration for gateway operations."""

    enabled: bool
    base_url: str | None
    client_id: str
    shared_secret: str | None
    audience: str
    token_ttl_seconds: int
    timeout_seconds: float
    pull_limit: int
    mtls_enabled: bool
    client_cert: str | None
    client_key: str | None
    ca_cert: str | None


@dataclass(frozen=True)
class RelayEventBatch:
    """Batch of events pulled from the gateway stream."""

    cursor: str | None
    events: list[RelayEvent]


def load_relay_gateway_config() -> RelayGatewayConfig:
    """Build configuration object from global settings."""

    return RelayGatewayConfig(
        enabled=bool(settings.relay_gateway_enabled and settings.relay_gateway_base_url),
        base_url=settings.relay_gateway_base_url,
        client_id=settings.relay_gateway_client_id,
        shared_secret=settings.relay_gateway_shared_secret,
        audience=settings.relay_gateway_audience,
        token_ttl_seconds=settings.relay_gateway_token_ttl_seconds,
        timeout_seconds=float(settings.relay_gateway_http_timeout_seconds),
        pull_limit=settings.relay_gateway_pull_limit,
        mtls_enabled=settings.relay_gateway_mtls_enabled,
        client_cert=settings.relay_gateway_client_cert,
        client_key=settings.relay_gateway_client_key,
        ca_cert=settings.relay_gateway_ca_cert,
    )


class RelayGatewayClient:
    """Async client for the gateway's stream, publish and health endpoints."""

    def __init__(
        self,
        config: RelayGatewayConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_relay_gateway_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._gate = FailureGate()
        self._stats = GatewayStats()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.base_url)

    def _tls_options(self) -> dict[str, Any]:
        if not self.config.mtls_enabled:
            return {"verify": self.config.ca_cert or True}
        if not (self.config.client_cert and self.config.client_key):
            raise RelayError("mTLS enabled but client certificate or key missing")
        return {
            "cert": (self.config.client_cert, self.config.client_key),
            "verify": self.config.ca_cert or True,
        }

    async def _http(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url or "",
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                    **self._tls_options(),
                )
        return self._client

    def _headers(self, idempotency_key: str | None) -> dict[str, str]:
        headers = {"X-Relay-Client-Id": self.config.client_id}

        if self.config.shared_secret:
            now = int(time.time())
            claims = {
                "iss": self.config.client_id,
                "aud": self.config.audience,
                "iat": now,
                "exp": now + max(1, self.config.token_ttl_seconds),
                "jti": secrets.token_hex(8),
            }
            token = jwt.encode(claims, self.config.shared_secret, algorithm="HS256")
            headers["Authorization"] = f"Bearer {token}"

        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        *,
        body: Any | None = None,
        idempotency_key: str | None = None,
    ) -> httpx.Response:
        """Make one gateway call and return its response if it succeeded."""
        if not self.enabled:
            raise RelayDisabledError("Relay gateway is not enabled")
        if not self._gate.allows(time.monotonic()):
            raise RelayUnavailableError(
                f"Relay gateway paused after {self._gate.failures} consecutive failures"
            )

        client = await self._http()
        started = time.perf_counter()
        try:
            response = await client.request(
                method, path, json=body, headers=self._headers(idempotency_key)
            )
        except httpx.HTTPError as exc:
            self._stats.record((time.perf_counter() - started) * 1000, type(exc).__name__)
            self._gate.failed(time.monotonic())
            raise RelayUnavailableError(f"Relay gateway request to {path} failed: {exc}") from exc

        latency_ms = (time.perf_counter() - started) * 1000
        if response.is_server_error:
            self._stats.record(latency_ms, f"http_{response.status_code}")
            self._gate.failed(time.monotonic())
            raise RelayUnavailableError(f"Relay gateway responded to {path} with {response.status_code}")

        self._gate.succeeded()
        if not response.is_success:
            self._stats.record(latency_ms, f"http_{response.status_code}", rejected=True)
            raise RelayRejectedError(path, response.status_code, response.text)

        self._stats.record(latency_ms)
        return response

    async def pull_events(
        self, filters: list[dict[str, Any]], cursor: str | None = None
    ) -> RelayEventBatch:
        """Pull the next batch of events matching ``filters`` from the merged relay stream.

        Payloads that do not validate as relay events are skipped.
        """
        body: dict[str, Any] = {"filters": filters, "limit": self.config.pull_limit}
        if cursor:
            body["cursor"] = cursor

        payload = (await self._send("POST", STREAM_PATH, body=body)).json()
        events: list[RelayEvent] = []
        for item in payload.get("events") or []:
            try:
                events.append(RelayEvent.model_validate(item))
            except ValidationError as e:
                logger.debug("Skipping malformed relay event from gateway: %s", e)
        return RelayEventBatch(cursor=payload.get("cursor"), events=events)

    async def publish_event(self, draft: EventDraft) -> str | None:
        """Ask the gateway to sign and broadcast ``draft``.

        Returns the published event id, or None when the gateway took the draft
        but no relay accepted it. Raises ``RelayRejectedError`` when the gateway
        refuses the draft itself.
        """
        key = hashlib.sha256(draft.model_dump_json().encode()).hexdigest()
        response = await self._send("POST", PUBLISH_PATH, body=draft.model_dump(), idempotency_key=key)

        event_id = response.json().get("id") if response.content else None
        return str(event_id) if event_id else None

    async def health_check(self) -> dict[str, Any]:
        """Call the gateway health endpoint and report the client's view of it."""
        if not self.enabled:
            return {
                "status": "disabled",
                "enabled": False,
                "error": "Relay gateway integration is disabled",
            }

        report: dict[str, Any] = {"status": "healthy", "enabled": True}
        try:
            await self._send("GET", HEALTH_PATH)
        except RelayRejectedError as e:
            report.update(status="unhealthy", error=str(e))
        except RelayError as e:
            report.update(status="error", error=str(e))
        report["response_time_ms"] = self._stats.last_latency_ms
        report["circuit_breaker"] = self._gate.status(time.monotonic())
        return report

    def get_metrics(self) -> dict[str, Any]:
        """Return request counters and the failure gate state."""
        return {
            "enabled": self.enabled,
            **self._stats.as_dict(),
            "circuit_breaker": self._gate.status(time.monotonic()),
        }

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


_relay_client: RelayGatewayClient | None = None


def get_relay_client() -> RelayGatewayClient:
    """Return the process-wide gateway client, creating it on first use."""
    global _relay_client
    if _relay_client is None:
        _relay_client = RelayGatewayClient()
    return _relay_client


def relay_gateway_enabled() -> bool:
    """Return True if the relay gateway integration is active."""

    return get_relay_client().enabled
