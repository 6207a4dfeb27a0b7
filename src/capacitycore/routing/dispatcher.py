"""Single-shot HTTP dispatch to downstream agents."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from capacitycore.core.exceptions import (
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
)
from capacitycore.registry.models import AgentDescriptor

logger = logging.getLogger(__name__)


class AgentDispatcher:
    """Send routed operations to agent endpoints.

    Each agent gets its own concurrency bound, so a hung agent can only
    exhaust its own slots. The deadline covers waiting for a slot and the
    request itself; on expiry or caller cancellation the in-flight request
    is cancelled. No retries are attempted.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_concurrent_per_agent: int = 16,
    ):
        self._client = client
        self._owns_client = client is None
        self._max_concurrent = max_concurrent_per_agent
        self._semaphores: dict[str, asyncio.Semaphore] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers={"Content-Type": "application/json"})
        return self._client

    def _semaphore(self, agent_name: str) -> asyncio.Semaphore:
        semaphore = self._semaphores.get(agent_name)
        if semaphore is None:
            semaphore = asyncio.Semaphore(self._max_concurrent)
            self._semaphores[agent_name] = semaphore
        return semaphore

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def dispatch(
        self,
        agent: AgentDescriptor,
        operation: str,
        payload: dict[str, Any],
        request_id: str,
        timeout_seconds: float,
    ) -> Any:
        """Dispatch one operation and return the agent's parsed response.

        Raises:
            UpstreamTimeoutError: No answer before ``timeout_seconds``
            UpstreamUnreachableError: Connection or transport failure
            UpstreamError: Agent answered with a 4xx/5xx status
        """
        body = {"action": operation, "payload": payload, "request_id": request_id}
        try:
            return await asyncio.wait_for(
                self._send(agent, body, timeout_seconds),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise UpstreamTimeoutError(
                f"Agent '{agent.name}' did not respond within {timeout_seconds:.1f}s",
                agent_name=agent.name,
            ) from None

    async def _send(self, agent: AgentDescriptor, body: dict[str, Any], timeout_seconds: float) -> Any:
        async with self._semaphore(agent.name):
            try:
                response = await self._get_client().post(
                    agent.endpoint,
                    json=body,
                    headers={"X-Request-ID": body["request_id"]},
                    timeout=timeout_seconds,
                )
            except httpx.TimeoutException as e:
                raise UpstreamTimeoutError(
                    f"Agent '{agent.name}' timed out: {e}",
                    agent_name=agent.name,
                ) from e
            except httpx.TransportError as e:
                raise UpstreamUnreachableError(
                    f"Agent '{agent.name}' unreachable: {e}",
                    agent_name=agent.name,
                ) from e

        if response.status_code >= 400:
            raise UpstreamError(
                f"Agent '{agent.name}' returned HTTP {response.status_code}",
                agent_name=agent.name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}
