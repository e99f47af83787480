from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from typing import Any, Dict, List, Literal, Optional, Type

from notify_relay.errors import UnknownNotificationType, ValidationError

RELEASE_NOTES_PLACEHOLDER = "No release notes."


class FirmwareRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: str = Field(min_length=1)
    file_url: str = Field(min_length=1)
    release_notes: Optional[str] = None


class FirmwareWebhookEnvelope(BaseModel):
    """Row insert event as sent by the database change trigger"""
    model_config = ConfigDict(extra="ignore")

    record: FirmwareRecord


class FirmwareNotice(BaseModel):
    """Payload published to the firmware topic"""
    version: str
    release_notes: str
    url: str

    @classmethod
    def from_record(cls, record: FirmwareRecord) -> "FirmwareNotice":
        return cls(
            version=record.version,
            release_notes=record.release_notes or RELEASE_NOTES_PLACEHOLDER,
            url=record.file_url,
        )


class _Notification(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FirmwareUpdateNotification(_Notification):
    type: Literal["firmware_update"] = "firmware_update"
    version: Optional[str] = None
    release_notes: Optional[str] = None


class _ReadingNotification(_Notification):
    message: Optional[str] = None
    humidity: Optional[float] = None
    temperature: Optional[float] = None


class CriticalAlertNotification(_ReadingNotification):
    type: Literal["critical_alert"] = "critical_alert"


class WarningNotification(_ReadingNotification):
    type: Literal["warning"] = "warning"


class InfoNotification(_ReadingNotification):
    type: Literal["info"] = "info"


NOTIFICATION_TYPES: Dict[str, Type[_Notification]] = {
    "firmware_update": FirmwareUpdateNotification,
    "critical_alert": CriticalAlertNotification,
    "warning": WarningNotification,
    "info": InfoNotification,
}


class OutboundNotification(BaseModel):
    subject: str
    html: str


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    mqtt_broker: str
    email_configured: bool
    relays: List[str]


def describe_validation_error(exc: PydanticValidationError) -> str:
    """Flatten a pydantic error into one line naming the offending fields"""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"'{location}' {error['msg'].lower()}")
    return "; ".join(problems)


def parse_firmware_envelope(data: Any) -> FirmwareWebhookEnvelope:
    try:
        return FirmwareWebhookEnvelope.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Webhook payload is missing 'version' or 'file_url': {describe_validation_error(e)}"
        ) from e


def parse_notification(data: Any) -> _Notification:
    """Select the notification variant from the 'type' field and validate it"""
    if not isinstance(data, dict):
        raise ValidationError("Notification payload must be a JSON object")

    notification_type = data.get("type")
    model = NOTIFICATION_TYPES.get(notification_type) if isinstance(notification_type, str) else None
    if model is None:
        raise UnknownNotificationType(notification_type)

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid '{notification_type}' notification: {describe_validation_error(e)}"
        ) from e
