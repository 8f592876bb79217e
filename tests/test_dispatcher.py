import asyncio
import json

import httpx
import pytest

respx = pytest.importorskip("respx")
from httpx import Response

from push.apns_client import APNsClient, APNsError
from push.config import PushSettings
from push.schemas.push import DeviceEndpoint, PushMessage
from push.services.dispatcher import DeliveryDispatcher
from push.services.push_handler import build_apns_client

APNS = "https://api.sandbox.push.apple.com"


def _message() -> PushMessage:
    return PushMessage(
        title="New Like",
        body="jane liked your post",
        type="like",
        post_id="post-1",
        actor_id="user-2",
    )


@pytest.mark.asyncio
@respx.mock
async def test_dispatch_sends_apns_request_per_endpoint():
    route = respx.post(f"{APNS}/3/device/abc").mock(return_value=Response(200))
    client = APNsClient(host="api.sandbox.push.apple.com", bundle_id="com.thisday.app")
    dispatcher = DeliveryDispatcher(client)

    summary = await dispatcher.dispatch("jwt-token", _message(), [DeviceEndpoint(token="abc")])

    assert summary.succeeded == 1 and summary.failed == 0
    request = route.calls[0].request
    assert request.headers["authorization"] == "bearer jwt-token"
    assert request.headers["apns-topic"] == "com.thisday.app"
    assert request.headers["apns-push-type"] == "alert"
    assert request.headers["apns-priority"] == "10"
    assert json.loads(request.content) == {
        "aps": {
            "alert": {"title": "New Like", "body": "jane liked your post"},
            "sound": "default",
            "badge": 1,
        },
        "type": "like",
        "post_id": "post-1",
        "actor_id": "user-2",
    }
    await dispatcher.close()


@pytest.mark.asyncio
@respx.mock
async def test_partial_failures_do_not_stop_other_endpoints():
    routes = {
        "ok-1": respx.post(f"{APNS}/3/device/ok-1").mock(return_value=Response(200)),
        "gone": respx.post(f"{APNS}/3/device/gone").mock(
            return_value=Response(410, json={"reason": "Unregistered"})
        ),
        "ok-2": respx.post(f"{APNS}/3/device/ok-2").mock(return_value=Response(200)),
        "down": respx.post(f"{APNS}/3/device/down").mock(
            side_effect=httpx.ConnectError("connection refused")
        ),
        "slow": respx.post(f"{APNS}/3/device/slow").mock(
            side_effect=httpx.ReadTimeout("timed out")
        ),
    }
    client = APNsClient(host="api.sandbox.push.apple.com", bundle_id="com.thisday.app")
    dispatcher = DeliveryDispatcher(client)
    endpoints = [DeviceEndpoint(token=token) for token in routes]

    summary = await dispatcher.dispatch("jwt", _message(), endpoints)

    assert all(route.call_count == 1 for route in routes.values())
    assert summary.total == 5
    assert summary.succeeded == 2
    assert summary.failed == 3
    assert any(error.startswith("APNs error: 410 - ") for error in summary.errors)
    assert "connection refused" in summary.errors
    assert "timed out" in summary.errors
    assert summary.unregistered_tokens == ["gone"]
    gone = next(o for o in summary.outcomes if o.endpoint_token == "gone")
    assert gone.status_code == 410 and gone.reason == "Unregistered"
    await dispatcher.close()


class BlockingSender:
    """First token waits until the second one has been sent."""

    def __init__(self) -> None:
        self.second_sent = asyncio.Event()
        self.sent: list[str] = []

    async def send(self, device_token, credential, payload):
        if device_token == "first":
            await asyncio.wait_for(self.second_sent.wait(), timeout=1)
        else:
            self.second_sent.set()
        self.sent.append(device_token)

    async def close(self):
        return None


@pytest.mark.asyncio
async def test_deliveries_run_concurrently():
    sender = BlockingSender()
    dispatcher = DeliveryDispatcher(sender)

    summary = await dispatcher.dispatch(
        "jwt", _message(), [DeviceEndpoint(token="first"), DeviceEndpoint(token="second")]
    )

    assert summary.succeeded == 2
    assert sender.sent == ["second", "first"]


class ExplodingSender:
    def __init__(self) -> None:
        self.calls = 0

    async def send(self, device_token, credential, payload):
        self.calls += 1
        if device_token.startswith("bad"):
            raise RuntimeError("")
        if device_token == "rejected":
            raise APNsError(400, "BadDeviceToken")

    async def close(self):
        return None


@pytest.mark.asyncio
async def test_unexpected_sender_errors_are_recorded():
    sender = ExplodingSender()
    dispatcher = DeliveryDispatcher(sender)
    endpoints = [DeviceEndpoint(token=t) for t in ("bad-1", "good", "rejected", "bad-2")]

    summary = await dispatcher.dispatch("jwt", _message(), endpoints)

    assert sender.calls == 4
    assert summary.succeeded == 1
    assert summary.failed == 3
    assert summary.errors.count("RuntimeError") == 2
    assert "APNs error: 400 - BadDeviceToken" in summary.errors


@pytest.mark.asyncio
async def test_dispatch_with_no_endpoints_returns_empty_summary():
    dispatcher = DeliveryDispatcher(ExplodingSender())
    summary = await dispatcher.dispatch("jwt", _message(), [])
    assert summary.total == 0 and summary.errors == []


@pytest.mark.asyncio
@respx.mock
async def test_configured_apns_timeout_reaches_client(monkeypatch):

    monkeypatch.setenv("APNS_KEY_ID", "KEY")
    monkeypatch.setenv("APNS_TEAM_ID", "TEAM")
    monkeypatch.setenv("APNS_PRIVATE_KEY", "pem")
    monkeypatch.setenv("APNS_ENVIRONMENT", "production")
    monkeypatch.setenv("APNS_TIMEOUT_SECONDS", "2.5")
    client = build_apns_client(PushSettings())

    assert client.timeout == httpx.Timeout(2.5)

    respx.post("https://api.push.apple.com/3/device/stuck").mock(
        side_effect=httpx.ReadTimeout("timed out")
    )
    respx.post("https://api.push.apple.com/3/device/fine").mock(return_value=Response(200))
    dispatcher = DeliveryDispatcher(client)

    summary = await dispatcher.dispatch(
        "jwt", _message(), [DeviceEndpoint(token="stuck"), DeviceEndpoint(token="fine")]
    )

    assert summary.succeeded == 1
    assert summary.errors == ["timed out"]
    await dispatcher.close()
