from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
import os
import sys
import logging

from notify_relay.config import Config
from notify_relay.models import HealthResponse
from notify_relay.routes import RelayRoutes

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Jamur Notify Relay"
SERVICE_VERSION = "1.0.0"


def load_config() -> Config:
    # Get config path from environment or use default
    config_path = os.getenv("CONFIG_PATH", "config/relay.yaml")
    logger.info(f"Loading configuration from: {config_path}")
    config = Config.load(config_path)
    logger.info("Configuration loaded successfully")
    logger.info(f"MQTT Broker: {config.mqtt.broker}:{config.mqtt.port} (topic: {config.mqtt.topic})")
    logger.info(f"Email provider: {config.email.api_url}")
    return config


def create_app(config: Optional[Config] = None, relay_routes: Optional[RelayRoutes] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        if app.state.config is None:
            try:
                app.state.config = load_config()
            except Exception as e:
                logger.error(f"Error loading configuration: {e}", exc_info=True)
                sys.exit(1)
        config = app.state.config

        if not config.mqtt.username or not config.mqtt.password:
            logger.warning("MQTT credentials not set - set MQTT_USER_SECRET and MQTT_PASS_SECRET")
        if not config.email.api_key:
            logger.warning("Email API key not set - set RESEND_API_KEY")

        # Routes are registered on the first startup only; later startups reuse them
        if not app.state.relay_paths:
            routes = relay_routes or RelayRoutes(config)
            app.include_router(routes.router, prefix=f"/functions/{config.api_version}")
            app.state.relay_paths = [f"/functions/{config.api_version}{path}" for path in routes.paths]
            logger.info(f"Relay routes registered: {', '.join(app.state.relay_paths)}")

        # Log authentication status
        if config.api_key:
            logger.info("API authentication is ENABLED")
        else:
            logger.warning("API authentication is DISABLED - set RELAY_API_KEY environment variable for security")

        yield

        logger.info("Shutting down...")

    app = FastAPI(
        title=SERVICE_NAME,
        description="Relays firmware webhooks to MQTT and notifications to email",
        version=SERVICE_VERSION,
        lifespan=lifespan
    )
    app.state.config = config
    app.state.relay_paths = []

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        config = app.state.config
        return {
            "status": "healthy",
            "mqtt_broker": f"{config.mqtt.broker}:{config.mqtt.port}" if config else "",
            "email_configured": bool(config and config.email.api_key),
            "relays": app.state.relay_paths,
        }

    @app.get("/")
    async def root():
        """Root endpoint with basic information"""
        config = app.state.config
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "api_version": config.api_version if config else "v1",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
