"""Async MQTT connection used as the meter's output sink."""

from __future__ import annotations

import contextlib
import logging
import time

import aiomqtt

from tariff_meter.config.schema import MQTTConfig

logger = logging.getLogger(__name__)


class MQTTClient:
    """Holds one broker session and reopens it lazily after a failure.

    After a failed connect no new attempt is made for
    ``reconnect_interval_seconds``; writes in that window fail at once.
    ``publish`` raises on failure; callers decide whether a lost write
    matters.
    """

    def __init__(self, config: MQTTConfig) -> None:
        self._config = config
        self._client: aiomqtt.Client | None = None
        self._next_connect_at = 0.0

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> bool:
        """Open the broker session. Returns False if the broker is unreachable."""
        client = aiomqtt.Client(
            hostname=self._config.broker_host,
            port=self._config.broker_port,
            username=self._config.username or None,
            password=self._config.password or None,
        )
        try:
            await client.__aenter__()
        except aiomqtt.MqttError as e:
            self._next_connect_at = time.monotonic() + self._config.reconnect_interval_seconds
            logger.warning(
                "MQTT broker %s:%d unreachable, retrying in %.0fs: %s",
                self._config.broker_host, self._config.broker_port,
                self._config.reconnect_interval_seconds, e,
            )
            return False
        self._client = client
        self._next_connect_at = 0.0
        logger.info("MQTT connected to %s:%d", self._config.broker_host, self._config.broker_port)
        return True

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            with contextlib.suppress(aiomqtt.MqttError):
                await client.__aexit__(None, None, None)

    async def publish(self, topic: str, payload: str, retain: bool = False) -> None:
        if self._client is None:
            if time.monotonic() < self._next_connect_at or not await self.connect():
                raise ConnectionError(f"MQTT broker {self._config.broker_host} not connected")
        try:
            await self._client.publish(topic, payload, retain=retain)
        except aiomqtt.MqttError:
            # Next publish reconnects
            await self.disconnect()
            raise
