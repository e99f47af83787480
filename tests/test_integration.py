"""
Integration tests against a running relay and a real MQTT broker

This test suite:
- Expects the relay at RELAY_BASE_URL, started with tls: false and pointed at
  the broker at MQTT_TEST_BROKER (e.g. a local Mosquitto)
- Sends firmware webhooks to the relay over HTTP
- Connects a fresh MQTT client afterwards and checks the retained message

Skipped unless RELAY_BASE_URL is set.
"""

import os
import json
import time
import uuid
import pytest
import requests
import paho.mqtt.client as mqtt
from queue import Queue, Empty
from typing import Any, Dict, Optional

RELAY_BASE_URL = os.getenv("RELAY_BASE_URL")
MQTT_TEST_BROKER = os.getenv("MQTT_TEST_BROKER", "localhost")
MQTT_TEST_PORT = int(os.getenv("MQTT_TEST_PORT", "1883"))
FIRMWARE_TOPIC = "jamur/firmware/new_available"

pytestmark = pytest.mark.skipif(not RELAY_BASE_URL, reason="RELAY_BASE_URL not set")


class RetainedReader:
    """Subscribes with a new session and collects what the broker delivers"""

    def __init__(self, broker: str, port: int):
        self.broker = broker
        self.port = port
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=f"relay-test-{uuid.uuid4().hex[:8]}")
        self.messages: Queue = Queue()
        self.client.on_message = self._on_message

    def _on_message(self, client, userdata, msg):
        self.messages.put({
            "topic": msg.topic,
            "payload": msg.payload.decode('utf-8'),
            "retain": msg.retain,
        })

    def read(self, topic: str, timeout: float = 5.0) -> Optional[Dict[str, Any]]:
        self.client.connect(self.broker, self.port, keepalive=60)
        self.client.loop_start()
        try:
            self.client.subscribe(topic, qos=1)
            return self.messages.get(timeout=timeout)
        except Empty:
            return None
        finally:
            self.client.loop_stop()
            self.client.disconnect()


def post_firmware(version: str) -> requests.Response:
    return requests.post(
        f"{RELAY_BASE_URL}/functions/v1/notify-new-firmware",
        headers={"Authorization": f"Bearer {os.getenv('RELAY_API_KEY', '')}"},
        json={"record": {"version": version, "file_url": f"https://example.com/fw-{version}.bin"}},
        timeout=30,
    )


def test_late_subscriber_receives_latest_firmware_notice():
    first, second = f"9.0.{int(time.time())}", f"9.1.{int(time.time())}"

    assert post_firmware(first).status_code == 200
    assert post_firmware(second).status_code == 200

    message = RetainedReader(MQTT_TEST_BROKER, MQTT_TEST_PORT).read(FIRMWARE_TOPIC)
    assert message is not None, "No retained message on the firmware topic"
    assert message["retain"] is True

    payload = json.loads(message["payload"])
    assert payload == {
        "version": second,
        "release_notes": "No release notes.",
        "url": f"https://example.com/fw-{second}.bin",
    }


def test_invalid_webhook_is_rejected():
    response = requests.post(
        f"{RELAY_BASE_URL}/functions/v1/notify-new-firmware",
        headers={"Authorization": f"Bearer {os.getenv('RELAY_API_KEY', '')}"},
        json={"record": {"version": "1.0.0"}},
        timeout=30,
    )
    assert response.status_code == 500
    assert "error" in response.json()
