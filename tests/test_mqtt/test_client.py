"""Tests for the MQTT client reconnect behaviour."""

from __future__ import annotations

import asyncio
from datetime import datetime

import aiomqtt
import pytest

from tariff_meter.config.schema import MQTTConfig, TariffConfig
from tariff_meter.mqtt import client as client_module
from tariff_meter.mqtt.client import MQTTClient
from tariff_meter.mqtt.publisher import MeterPublisher
from tariff_meter.tariff.resolver import build_reading


class FakeBroker:
    """Stands in for ``aiomqtt.Client``; records connects and publishes."""

    attempts = 0
    reachable = False
    published: list[tuple[str, str, bool]] = []

    def __init__(self, **kwargs) -> None:
        pass

    async def __aenter__(self):
        FakeBroker.attempts += 1
        if not FakeBroker.reachable:
            raise aiomqtt.MqttError("connection refused")
        return self

    async def __aexit__(self, *exc) -> None:
        pass

    async def publish(self, topic: str, payload: str, retain: bool = False) -> None:
        FakeBroker.published.append((topic, payload, retain))


@pytest.fixture
def broker(monkeypatch: pytest.MonkeyPatch) -> type[FakeBroker]:
    FakeBroker.attempts = 0
    FakeBroker.reachable = False
    FakeBroker.published = []
    monkeypatch.setattr(client_module.aiomqtt, "Client", FakeBroker)
    return FakeBroker


class TestMQTTClient:
    async def test_unreachable_broker_tried_once_per_batch(self, broker) -> None:
        client = MQTTClient(MQTTConfig(reconnect_interval_seconds=60))
        publisher = MeterPublisher(client.publish, "m")
        reading = build_reading(datetime(2025, 1, 15, 8, 0), TariffConfig())

        assert await publisher.publish_tariff(reading) == 0
        assert broker.attempts == 1

        await publisher.publish_tariff(reading)
        assert broker.attempts == 1

    async def test_reconnects_after_interval(self, broker) -> None:
        client = MQTTClient(MQTTConfig(reconnect_interval_seconds=0.05))

        assert await client.connect() is False
        with pytest.raises(ConnectionError):
            await client.publish("m/status", "online")
        assert broker.attempts == 1

        broker.reachable = True
        await asyncio.sleep(0.06)
        await client.publish("m/status", "online", retain=True)
        assert broker.attempts == 2
        assert client.is_connected
        assert broker.published == [("m/status", "online", True)]

    async def test_failed_publish_drops_session(self, broker, monkeypatch: pytest.MonkeyPatch) -> None:
        broker.reachable = True
        client = MQTTClient(MQTTConfig())
        assert await client.connect() is True

        async def broken(*args, **kwargs):
            raise aiomqtt.MqttError("lost")

        monkeypatch.setattr(FakeBroker, "publish", broken)
        with pytest.raises(aiomqtt.MqttError):
            await client.publish("m/status", "online")
        assert not client.is_connected
