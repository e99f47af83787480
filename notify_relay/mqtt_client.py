import enum
import logging
import secrets
import ssl
from aiomqtt import Client, MqttError
from typing import Optional
from notify_relay.config import MQTTConfig
from notify_relay.errors import (
    UpstreamConnectionError,
    UpstreamConnectionTimeout,
    UpstreamPublishError,
    UpstreamPublishTimeout,
)

logger = logging.getLogger(__name__)


class PublisherState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    PUBLISHING = "publishing"
    CLOSED = "closed"


# Allowed transitions; any state may move to CLOSED
_TRANSITIONS = {
    PublisherState.DISCONNECTED: {PublisherState.CONNECTING},
    PublisherState.CONNECTING: {PublisherState.CONNECTED},
    PublisherState.CONNECTED: {PublisherState.PUBLISHING},
    PublisherState.PUBLISHING: set(),
    PublisherState.CLOSED: set(),
}


def _is_timeout(exc: MqttError) -> bool:
    # aiomqtt reports its own timeouts as "Operation timed out"; socket timeouts say "timed out"
    return "timed out" in str(exc).lower()


class MQTTPublisher:
    """Single-use MQTT session: connect, publish one message, disconnect.

    A new publisher is built per request, with its own random client id so
    concurrent requests never take over each other's broker session.
    """

    def __init__(self, config: MQTTConfig):
        self.config = config
        self.client_id = f"{config.client_id_prefix}-{secrets.token_hex(6)}"
        self.client: Optional[Client] = None
        self.state = PublisherState.DISCONNECTED

    def _transition(self, new_state: PublisherState):
        if new_state != PublisherState.CLOSED and new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid MQTT publisher transition: {self.state.value} -> {new_state.value}")
        logger.debug(f"[{self.client_id}] {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _build_client(self) -> Client:
        return Client(
            hostname=self.config.broker,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            identifier=self.client_id,
            keepalive=self.config.keepalive,
            timeout=self.config.connect_timeout,
            tls_context=ssl.create_default_context() if self.config.tls else None,
        )

    def _drop_half_open_session(self):
        """Close the socket of a session that never got its CONNACK.

        aiomqtt releases its lock when the handshake fails but leaves the paho
        socket open; paho closes it once the queued DISCONNECT is written.
        """
        self.client._client.disconnect()
        self.client = None

    async def connect(self):
        """Connect to MQTT broker"""
        self._transition(PublisherState.CONNECTING)
        logger.debug(f"Attempting to connect to MQTT broker at {self.config.broker}:{self.config.port}")
        self.client = self._build_client()
        try:
            await self.client.__aenter__()
        except MqttError as e:
            self._drop_half_open_session()
            self._transition(PublisherState.CLOSED)
            if _is_timeout(e):
                logger.error(f"Timed out after {self.config.connect_timeout}s connecting to MQTT broker")
                raise UpstreamConnectionTimeout(
                    f"Timed out connecting to MQTT broker {self.config.broker}:{self.config.port}"
                ) from e
            logger.error(f"MQTT connection error: {e}")
            raise UpstreamConnectionError(f"MQTT connection error: {e}") from e
        self._transition(PublisherState.CONNECTED)
        logger.info(f"Connected to MQTT broker as '{self.client_id}'")

    async def disconnect(self):
        """Disconnect from MQTT broker"""
        if self.client:
            logger.debug("Disconnecting from MQTT broker")
            try:
                await self.client.__aexit__(None, None, None)
            except MqttError as e:
                logger.warning(f"Error while disconnecting from MQTT broker: {e}")
            self.client = None
            logger.debug("MQTT client disconnected")
        self._transition(PublisherState.CLOSED)

    async def publish(self, topic: str, payload: str, qos: int = 1, retain: bool = True):
        """Publish message to MQTT topic and wait for the broker acknowledgement"""
        if not self.client or self.state != PublisherState.CONNECTED:
            logger.error("Attempted to publish without connected MQTT client")
            raise RuntimeError("MQTT client not connected")

        self._transition(PublisherState.PUBLISHING)
        logger.info(f"Publishing to topic '{topic}' (QoS: {qos}, Retain: {retain})")
        logger.debug(f"Payload: {payload}")

        try:
            await self.client.publish(topic, payload, qos=qos, retain=retain, timeout=self.config.publish_timeout)
        except MqttError as e:
            if _is_timeout(e):
                logger.error(f"Timed out after {self.config.publish_timeout}s publishing to topic '{topic}'")
                raise UpstreamPublishTimeout(f"Timed out publishing to topic '{topic}'") from e
            logger.error(f"Failed to publish to topic '{topic}': {e}", exc_info=True)
            raise UpstreamPublishError(f"Failed to publish to topic '{topic}': {e}") from e
        logger.debug(f"Successfully published to topic '{topic}'")

    async def publish_once(self, topic: str, payload: str, qos: int = 1, retain: bool = True):
        """Run the whole connect, publish, disconnect sequence"""
        await self.connect()
        try:
            await self.publish(topic, payload, qos=qos, retain=retain)
        finally:
            await self.disconnect()
