"""
HTTP client for the transactional email provider (Resend API).
"""

import logging
from typing import Any, Dict, Optional

import httpx

from notify_relay.config import EmailConfig
from notify_relay.errors import UpstreamSendError, UpstreamSendTimeout
from notify_relay.models import OutboundNotification

logger = logging.getLogger(__name__)


class EmailSender:
    def __init__(self, config: EmailConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        # Tests inject an httpx.MockTransport here
        self.transport = transport

    def build_request_body(self, notification: OutboundNotification) -> Dict[str, Any]:
        return {
            "from": self.config.from_address,
            "to": [self.config.recipient],
            "subject": notification.subject,
            "html": notification.html,
        }

    async def send(self, notification: OutboundNotification) -> Any:
        """
        Send one email through the provider.

        Args:
            notification: Rendered subject and HTML body

        Returns:
            The provider's JSON response (or raw text when it is not JSON)

        Raises:
            UpstreamSendError: On a non-2xx response, transport error or timeout
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key or ''}",
        }
        body = self.build_request_body(notification)

        logger.info(f"Sending email '{notification.subject}' to {self.config.recipient}")
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self.transport) as client:
                response = await client.post(self.config.api_url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            logger.error(f"Email provider request timed out after {self.config.timeout}s: {e}")
            raise UpstreamSendTimeout(f"Email provider timed out after {self.config.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error talking to email provider: {e}")
            raise UpstreamSendError(f"Failed to reach email provider: {e}") from e

        if not response.is_success:
            logger.error(f"Failed to send email, status {response.status_code}: {response.text}")
            raise UpstreamSendError(
                f"Failed to send email via provider (status {response.status_code})"
            )

        logger.info("Email sent successfully")
        try:
            return response.json()
        except ValueError:
            return response.text
