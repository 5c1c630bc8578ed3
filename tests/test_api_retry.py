import asyncio

import aiohttp
import pytest

from taswira.utils.api_retry import APIRetryHandler, CircuitBreakerOpen, ProviderError


def make_handler(**kwargs) -> APIRetryHandler:
    defaults = dict(name="test", max_retries=3, base_delay=0, timeout_base=5, circuit_failure_threshold=2,
                    circuit_timeout=60)
    defaults.update(kwargs)
    return APIRetryHandler(**defaults)


async def test_returns_result_on_first_success():
    handler = make_handler()

    async def call(value):
        return value * 2

    assert await handler.execute_with_retry(call, 21) == 42


async def test_retries_transient_client_errors():
    handler = make_handler()
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise aiohttp.ClientConnectionError("connection reset")
        return "ok"

    assert await handler.execute_with_retry(flaky) == "ok"
    assert len(calls) == 3
    assert handler.get_stats()["failure_count"] == 0


async def test_retries_timeouts():
    handler = make_handler(max_retries=2, timeout_base=0.01)
    calls = []

    async def slow():
        calls.append(1)
        if len(calls) == 1:
            await asyncio.sleep(1)
        return "done"

    assert await handler.execute_with_retry(slow) == "done"
    assert len(calls) == 2


async def test_provider_error_is_not_retried():
    handler = make_handler()
    calls = []

    async def rejected():
        calls.append(1)
        raise ProviderError("bad request", status=400)

    with pytest.raises(ProviderError):
        await handler.execute_with_retry(rejected)
    assert len(calls) == 1
    assert handler.get_stats()["failure_count"] == 0


async def test_unexpected_error_stops_retrying():
    handler = make_handler()
    calls = []

    async def broken():
        calls.append(1)
        raise KeyError("data")

    with pytest.raises(KeyError):
        await handler.execute_with_retry(broken)
    assert len(calls) == 1


async def test_circuit_opens_after_repeated_failures():
    handler = make_handler(max_retries=1, circuit_failure_threshold=2)

    async def down():
        raise aiohttp.ClientConnectionError("refused")

    for _ in range(2):
        with pytest.raises(aiohttp.ClientConnectionError):
            await handler.execute_with_retry(down)

    assert handler.get_stats()["circuit_open"] is True
    with pytest.raises(CircuitBreakerOpen):
        await handler.execute_with_retry(down)


async def test_circuit_half_opens_after_timeout():
    handler = make_handler(max_retries=1, circuit_failure_threshold=1, circuit_timeout=0)

    async def down():
        raise aiohttp.ClientConnectionError("refused")

    async def up():
        return "back"

    with pytest.raises(aiohttp.ClientConnectionError):
        await handler.execute_with_retry(down)

    assert await handler.execute_with_retry(up) == "back"
    assert handler.get_stats() == {"name": "test", "failure_count": 0, "circuit_open": False}
