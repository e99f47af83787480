import logging
from typing import Any, Callable, Optional

from notify_relay.config import EmailConfig, MQTTConfig
from notify_relay.email_client import EmailSender
from notify_relay.models import FirmwareNotice, parse_firmware_envelope, parse_notification
from notify_relay.mqtt_client import MQTTPublisher
from notify_relay.templates import render_notification

logger = logging.getLogger(__name__)


class FirmwareNotifyRelay:
    """Forwards a new firmware row to the retained firmware topic"""

    def __init__(self, config: MQTTConfig, publisher_factory: Optional[Callable[[MQTTConfig], MQTTPublisher]] = None):
        self.config = config
        self.publisher_factory = publisher_factory or MQTTPublisher

    async def handle(self, data: Any) -> FirmwareNotice:
        envelope = parse_firmware_envelope(data)
        record = envelope.record
        logger.info(f"Firmware webhook received for version {record.version}")

        notice = FirmwareNotice.from_record(record)
        publisher = self.publisher_factory(self.config)
        await publisher.publish_once(
            topic=self.config.topic,
            payload=notice.model_dump_json(),
            qos=self.config.qos,
            retain=self.config.retain,
        )
        logger.info(f"Notification for version {record.version} published to '{self.config.topic}'")
        return notice


class EmailNotifyRelay:
    def __init__(self, config: EmailConfig, sender: Optional[EmailSender] = None):
        self.config = config
        self.sender = sender or EmailSender(config)

    async def handle(self, data: Any):
        notification = parse_notification(data)
        logger.info(f"Email notification requested: {notification.type}")
        outbound = render_notification(notification)
        await self.sender.send(outbound)
        return outbound
