from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from typing import Any, Awaitable, Callable, Optional
import logging

from notify_relay.auth import make_api_key_verifier
from notify_relay.config import Config
from notify_relay.errors import RelayError, ValidationError, response_status
from notify_relay.models import ErrorResponse, MessageResponse
from notify_relay.relays import EmailNotifyRelay, FirmwareNotifyRelay

logger = logging.getLogger(__name__)

FIRMWARE_SUCCESS_MESSAGE = "Firmware notification published."
EMAIL_SUCCESS_MESSAGE = "Email notification processed."


class RelayRoutes:
    def __init__(
        self,
        config: Config,
        firmware_relay: Optional[FirmwareNotifyRelay] = None,
        email_relay: Optional[EmailNotifyRelay] = None,
    ):
        self.config = config
        self.firmware_relay = firmware_relay or FirmwareNotifyRelay(config.mqtt)
        self.email_relay = email_relay or EmailNotifyRelay(config.email)
        self.router = APIRouter(dependencies=[Depends(make_api_key_verifier(config.api_key))])
        self._build_routes()

    @property
    def paths(self):
        return ["/notify-new-firmware", "/send-email-notification"]

    def _build_routes(self):
        @self.router.post(
            "/notify-new-firmware",
            response_model=MessageResponse,
            responses={500: {"model": ErrorResponse}},
            summary="Publish a retained new-firmware notice",
        )
        async def notify_new_firmware(request: Request):
            return await self._run(request, self.firmware_relay.handle, FIRMWARE_SUCCESS_MESSAGE)

        @self.router.post(
            "/send-email-notification",
            response_model=MessageResponse,
            responses={500: {"model": ErrorResponse}},
            summary="Render and send a notification email",
        )
        async def send_email_notification(request: Request):
            return await self._run(request, self.email_relay.handle, EMAIL_SUCCESS_MESSAGE)

    async def _run(self, request: Request, handler: Callable[[Any], Awaitable[Any]], success_message: str):
        """Parse the body, run the relay and map the outcome onto the JSON envelope"""
        try:
            try:
                data = await request.json()
            except ValueError as e:
                raise ValidationError("Invalid JSON in request body") from e

            await handler(data)
            return MessageResponse(message=success_message)

        except RelayError as e:
            logger.error(f"{request.url.path} failed: {e}")
            return JSONResponse(
                status_code=response_status(e, self.config.strict_status_codes),
                content=ErrorResponse(error=str(e)).model_dump(),
            )
        except Exception as e:
            logger.error(f"Internal error handling {request.url.path}: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error=f"Internal error: {str(e)}").model_dump(),
            )
