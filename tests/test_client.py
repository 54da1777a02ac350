import httpx
import pytest
from unittest.mock import patch
from lendit.core.client import LendingClient


def transport_answering(*statuses):
    calls = []

    def handler(request):
        calls.append(request)
        code = statuses[min(len(calls), len(statuses)) - 1]
        if code == 503:
            return httpx.Response(503, json={"error": "item_busy"}, headers={"Retry-After": "0"})
        if code == 409:
            return httpx.Response(409, json={"error": "no_copies_available"})
        return httpx.Response(code, json={"id": 1, "status": "active"})

    return httpx.MockTransport(handler), calls


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("lendit.core.client.time.sleep") as sleep:
        yield sleep


def test_busy_is_retried(no_sleep):
    transport, calls = transport_answering(503, 503, 201)
    with LendingClient(token="t", api_url="http://lendit.test/v1/api", transport=transport) as client:
        loan = client.borrow(1)
    assert loan["status"] == "active"
    assert len(calls) == 3
    assert no_sleep.call_count == 2
    assert calls[0].headers["Authorization"] == "Bearer t"


def test_busy_gives_up_after_max_attempts():
    transport, calls = transport_answering(503)
    with LendingClient(api_url="http://lendit.test/v1/api", transport=transport) as client:
        with pytest.raises(httpx.HTTPStatusError) as excinfo:
            client.borrow(1)
    assert excinfo.value.response.status_code == 503
    assert len(calls) == LendingClient.MAX_ATTEMPTS


def test_other_failures_are_not_retried():
    transport, calls = transport_answering(409)
    with LendingClient(api_url="http://lendit.test/v1/api", transport=transport) as client:
        with pytest.raises(httpx.HTTPStatusError) as excinfo:
            client.borrow(1)
    assert excinfo.value.response.json()["error"] == "no_copies_available"
    assert len(calls) == 1
