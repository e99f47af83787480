"""
Email subject/body rendering, one renderer per notification kind.

HTML is built with plain string formatting; free-text values are escaped.
"""
from decimal import ROUND_HALF_UP, Decimal
from functools import singledispatch
from html import escape
from typing import Optional

from notify_relay.models import (
    CriticalAlertNotification,
    FirmwareUpdateNotification,
    InfoNotification,
    OutboundNotification,
    WarningNotification,
)

READING_PLACEHOLDER = "-"
VERSION_PLACEHOLDER = "unknown"
NOTES_PLACEHOLDER = "No notes."
MESSAGE_PLACEHOLDER = "No message."


def format_reading(value: Optional[float], unit: str) -> str:
    """One fractional digit plus unit, or a dash when the reading is absent.

    Halves round away from zero on the exact binary value, so 42.25 renders as 42.3.
    """
    if value is None:
        return READING_PLACEHOLDER
    rounded = Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{rounded}{unit}"


def _reading_list(notification, label: str) -> str:
    message = escape(notification.message or MESSAGE_PLACEHOLDER)
    return (
        "<ul>\n"
        f"  <li><strong>Message:</strong> {message}</li>\n"
        f"  <li><strong>{label} Humidity:</strong> {format_reading(notification.humidity, '%')}</li>\n"
        f"  <li><strong>{label} Temperature:</strong> {format_reading(notification.temperature, '°C')}</li>\n"
        "</ul>\n"
    )


@singledispatch
def render_notification(notification) -> OutboundNotification:
    raise TypeError(f"No template registered for {type(notification).__name__}")


@render_notification.register
def _(notification: FirmwareUpdateNotification) -> OutboundNotification:
    version = notification.version or VERSION_PLACEHOLDER
    notes = escape(notification.release_notes or NOTES_PLACEHOLDER)
    return OutboundNotification(
        subject=f"🚀 New Firmware Available: {version}",
        html=(
            "<h1>New Firmware Update!</h1>\n"
            f"<p>New version <strong>{escape(version)}</strong> has been deployed successfully.</p>\n"
            "<p><strong>Release Notes:</strong></p>\n"
            f"<pre>{notes}</pre>\n"
        ),
    )


@render_notification.register
def _(notification: CriticalAlertNotification) -> OutboundNotification:
    return OutboundNotification(
        subject="⚠️ Critical Alert - Mushroom House",
        html=(
            "<h1>Critical Alert!</h1>\n"
            "<p>Humidity has dropped below the critical threshold and needs immediate attention.</p>\n"
            + _reading_list(notification, "Measured")
        ),
    )


@render_notification.register
def _(notification: WarningNotification) -> OutboundNotification:
    return OutboundNotification(
        subject="🔔 Warning - Mushroom House",
        html=(
            "<h1>Warning Notification</h1>\n"
            "<p>Environmental conditions are approaching the threshold.</p>\n"
            + _reading_list(notification, "Measured")
        ),
    )


@render_notification.register
def _(notification: InfoNotification) -> OutboundNotification:
    return OutboundNotification(
        subject="ℹ️ Info - Mushroom House Back to Normal",
        html=(
            "<h1>Information Notification</h1>\n"
            + _reading_list(notification, "Current")
        ),
    )
