"""Single-agent health probes."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import httpx

from capacitycore.health.models import HealthCheckResult
from capacitycore.registry.models import AgentDescriptor, HealthStatus

logger = logging.getLogger(__name__)


def classify_probe(status_code: int, response_time_ms: float, slow_response_ms: float = 5000.0) -> HealthStatus:
    """Map an answered probe to a health status.

    5xx is unhealthy. 4xx, or any success slower than ``slow_response_ms``,
    is degraded. Anything else (2xx, 3xx) is healthy.
    """
    if status_code >= 500:
        return HealthStatus.UNHEALTHY
    if status_code >= 400:
        return HealthStatus.DEGRADED
    if response_time_ms > slow_response_ms:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class HealthChecker:
    """Probes agent health endpoints.

    A probe never raises for agent-side problems: timeouts, connection
    errors and unexpected exceptions all come back as ``unreachable``
    results carrying the error text.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        slow_response_ms: float = 5000.0,
    ):
        self._client = client
        self._owns_client = client is None
        self._slow_response_ms = slow_response_ms

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=False)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def probe(self, agent: AgentDescriptor) -> HealthCheckResult:
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._request(agent),
                timeout=agent.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._unreachable(agent, start, f"No response within {agent.timeout_seconds:.1f}s")
        except httpx.HTTPError as e:
            return self._unreachable(agent, start, f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.error(f"Health probe for {agent.name} failed unexpectedly: {e}")
            return self._unreachable(agent, start, f"{type(e).__name__}: {e}")

        elapsed_ms = (time.perf_counter() - start) * 1000
        status = classify_probe(response.status_code, elapsed_ms, self._slow_response_ms)
        error = None if status == HealthStatus.HEALTHY else f"HTTP {response.status_code} in {elapsed_ms:.0f}ms"
        return HealthCheckResult(
            agent_name=agent.name,
            status=status,
            response_time_ms=elapsed_ms,
            status_code=response.status_code,
            error_message=error,
        )

    async def reset(self, agent: AgentDescriptor) -> bool:
        """Best-effort POST to the agent's recovery endpoint."""
        if not agent.recovery_url:
            return False
        try:
            response = await self._get_client().post(
                agent.recovery_url,
                json={"action": "recover"},
                timeout=agent.timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Recovery request for {agent.name} failed: {e}")
            return False
        logger.info(f"Recovery request for {agent.name} returned HTTP {response.status_code}")
        return response.status_code < 400

    async def _request(self, agent: AgentDescriptor) -> httpx.Response:
        client = self._get_client()
        if agent.health_method == "POST":
            return await client.post(agent.health_url, json={"action": "health"}, timeout=agent.timeout_seconds)
        return await client.get(agent.health_url, timeout=agent.timeout_seconds)

    @staticmethod
    def _unreachable(agent: AgentDescriptor, start: float, error: str) -> HealthCheckResult:
        return HealthCheckResult(
            agent_name=agent.name,
            status=HealthStatus.UNREACHABLE,
            response_time_ms=(time.perf_counter() - start) * 1000,
            error_message=error,
        )
