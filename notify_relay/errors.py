"""
Error taxonomy shared by both relays.

Every error carries the status it maps to in strict mode. By default all of
them surface as HTTP 500.
"""


class RelayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """Missing or invalid required input field"""
    status_code = 400


class UnknownNotificationType(RelayError):
    status_code = 400

    def __init__(self, notification_type):
        super().__init__(f"Invalid notification type: {notification_type}")
        self.notification_type = notification_type


class UpstreamConnectionError(RelayError):
    """MQTT broker unreachable or credentials rejected"""
    status_code = 502


class UpstreamPublishError(RelayError):
    """Broker accepted the connection but the publish failed"""
    status_code = 502


class UpstreamSendError(RelayError):
    """Email provider rejected the request"""
    status_code = 502


class UpstreamTimeoutMixin:
    status_code = 504


class UpstreamConnectionTimeout(UpstreamTimeoutMixin, UpstreamConnectionError):
    pass


class UpstreamPublishTimeout(UpstreamTimeoutMixin, UpstreamPublishError):
    pass


class UpstreamSendTimeout(UpstreamTimeoutMixin, UpstreamSendError):
    pass


def response_status(exc: RelayError, strict: bool) -> int:
    return exc.status_code if strict else 500
