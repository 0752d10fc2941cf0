import pytest

from hookgate.delivery import ChannelDispatcher
from hookgate.logging import setup_logging
from hookgate.topology import resolve_topology


def test_targets_default_to_log() -> None:
    topology = resolve_topology(["message", "self"])
    dispatcher = ChannelDispatcher(targets={"self": ["webhook:https://hooks.example.com/self"]})

    assert dispatcher.targets_for(topology.channels[0]) == ["log"]
    assert dispatcher.targets_for(topology.channels[1]) == ["webhook:https://hooks.example.com/self"]


@pytest.mark.asyncio
async def test_log_target_delivers() -> None:
    channel = resolve_topology(["*"]).channels[0]
    dispatcher = ChannelDispatcher()

    assert await dispatcher.dispatch(channel, [{"event": "message"}]) is True


@pytest.mark.asyncio
async def test_log_target_delivers_with_logging_configured() -> None:
    setup_logging(level="INFO", fmt="json")
    channel = resolve_topology(["message"]).channels[0]

    assert await ChannelDispatcher().dispatch(channel, [{"event": "message", "payload": {"body": "hi"}}]) is True


@pytest.mark.asyncio
async def test_unknown_or_empty_targets_fail() -> None:
    channel = resolve_topology(["message"]).channels[0]
    dispatcher = ChannelDispatcher(targets={"message": ["telegram"]})

    assert await dispatcher.dispatch(channel, [{"event": "message"}]) is False
    assert await dispatcher.dispatch_target(target="webhook:", channel=channel, payload={}) is False
    assert await dispatcher.dispatch_target(target="  ", channel=channel, payload={}) is False


@pytest.mark.asyncio
async def test_webhook_target_posts_payload(monkeypatch) -> None:
    import httpx

    sent: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200)

    real_client = httpx.AsyncClient

    def fake_client(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", fake_client)
    channel = resolve_topology(["message"]).channels[0]
    dispatcher = ChannelDispatcher(targets={"message": ["https://hooks.example.com/in"]})

    assert await dispatcher.dispatch(channel, [{"event": "message"}]) is True
    assert sent[0].url == "https://hooks.example.com/in"
    assert sent[0].headers["x-hookgate-channel"] == "message"
