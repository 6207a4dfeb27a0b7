"""Unit tests for health probes."""

import asyncio
import json

import httpx
import pytest

from capacitycore.health import HealthChecker, classify_probe
from capacitycore.registry import HealthStatus


def checker_for(handler, slow_response_ms=5000.0):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HealthChecker(client=client, slow_response_ms=slow_response_ms)


class TestClassifyProbe:

    def test_statuses(self):
        assert classify_probe(200, 10) == HealthStatus.HEALTHY
        assert classify_probe(302, 10) == HealthStatus.HEALTHY
        assert classify_probe(404, 10) == HealthStatus.DEGRADED
        assert classify_probe(500, 10) == HealthStatus.UNHEALTHY
        assert classify_probe(503, 10) == HealthStatus.UNHEALTHY

    def test_slow_success_is_degraded(self):
        assert classify_probe(200, 5001) == HealthStatus.DEGRADED
        assert classify_probe(200, 5000) == HealthStatus.HEALTHY
        assert classify_probe(200, 150, slow_response_ms=100) == HealthStatus.DEGRADED


class TestHealthChecker:

    @pytest.mark.asyncio
    async def test_healthy(self, make_agent):
        checker = checker_for(lambda request: httpx.Response(200, json={"status": "ok"}))

        result = await checker.probe(make_agent("beds"))

        assert result.agent_name == "beds"
        assert result.status == HealthStatus.HEALTHY
        assert result.status_code == 200
        assert result.error_message is None
        assert result.response_time_ms >= 0

    @pytest.mark.asyncio
    async def test_get_health_path(self, make_agent):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            return httpx.Response(200)

        await checker_for(handler).probe(make_agent("beds"))

        assert seen == {"method": "GET", "url": "http://beds.test/health"}

    @pytest.mark.asyncio
    async def test_post_health_action(self, make_agent):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["host"] = request.url.host
            seen["body"] = json.loads(request.content)
            return httpx.Response(200)

        agent = make_agent("beds", health_method="POST", health_path="")
        await checker_for(handler).probe(agent)

        assert seen == {"method": "POST", "host": "beds.test", "body": {"action": "health"}}

    @pytest.mark.asyncio
    async def test_client_error_is_degraded(self, make_agent):
        result = await checker_for(lambda request: httpx.Response(404)).probe(make_agent())

        assert result.status == HealthStatus.DEGRADED
        assert result.error_message.startswith("HTTP 404")

    @pytest.mark.asyncio
    async def test_server_error_is_unhealthy(self, make_agent):
        result = await checker_for(lambda request: httpx.Response(503)).probe(make_agent())

        assert result.status == HealthStatus.UNHEALTHY
        assert result.status_code == 503

    @pytest.mark.asyncio
    async def test_slow_response_is_degraded(self, make_agent):
        checker = checker_for(lambda request: httpx.Response(200), slow_response_ms=-1)

        result = await checker.probe(make_agent())

        assert result.status == HealthStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_connection_error_is_unreachable(self, make_agent):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await checker_for(handler).probe(make_agent())

        assert result.status == HealthStatus.UNREACHABLE
        assert "ConnectError" in result.error_message
        assert result.status_code is None

    @pytest.mark.asyncio
    async def test_timeout_is_unreachable(self, make_agent):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1.0)
            return httpx.Response(200)

        result = await checker_for(handler).probe(make_agent(timeout_seconds=0.05))

        assert result.status == HealthStatus.UNREACHABLE
        assert "No response within" in result.error_message

    @pytest.mark.asyncio
    async def test_unexpected_error_is_unreachable(self, make_agent):
        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("kaboom")

        result = await checker_for(handler).probe(make_agent())

        assert result.status == HealthStatus.UNREACHABLE
        assert "kaboom" in result.error_message

    @pytest.mark.asyncio
    async def test_reset(self, make_agent):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(202)

        accepted = await checker_for(handler).reset(make_agent("beds", recovery_path="/reset"))

        assert accepted is True
        assert seen == {"url": "http://beds.test/reset", "body": {"action": "recover"}}

    @pytest.mark.asyncio
    async def test_reset_without_recovery_path(self, make_agent):
        checker = checker_for(lambda request: httpx.Response(200))

        assert await checker.reset(make_agent()) is False

    @pytest.mark.asyncio
    async def test_reset_rejected(self, make_agent):
        checker = checker_for(lambda request: httpx.Response(500))

        assert await checker.reset(make_agent(recovery_path="/reset")) is False
