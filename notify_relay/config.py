from pydantic import BaseModel, Field
from typing import Optional
import os
import yaml


# Environment variables holding secrets, applied on top of the YAML file
ENV_SECRETS = {
    "MQTT_USER_SECRET": ("mqtt", "username"),
    "MQTT_PASS_SECRET": ("mqtt", "password"),
    "RESEND_API_KEY": ("email", "api_key"),
    "RELAY_API_KEY": (None, "api_key"),
}


class MQTTConfig(BaseModel):
    broker: str = "e21436f97e4c46358cda880324a5a6ba.s2.eu.hivemq.cloud"
    port: int = 8883
    username: Optional[str] = None
    password: Optional[str] = None
    client_id_prefix: str = "firmware-notify"
    keepalive: int = 60
    tls: bool = True
    topic: str = "jamur/firmware/new_available"
    qos: int = Field(default=1, ge=0, le=2)  # MQTT QoS level
    retain: bool = True
    connect_timeout: float = Field(default=10.0, gt=0)
    publish_timeout: float = Field(default=10.0, gt=0)


class EmailConfig(BaseModel):
    api_url: str = "https://api.resend.com/emails"
    api_key: Optional[str] = None
    sender: str = "jamurmen@resend.dev"
    sender_name: str = "Jamur IoT Notifications"
    recipient: str = "bagus251001@gmail.com"
    timeout: float = Field(default=30.0, gt=0)

    @property
    def from_address(self) -> str:
        return f"{self.sender_name} <{self.sender}>"


class Config(BaseModel):
    mqtt: MQTTConfig = Field(default_factory=MQTTConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    api_version: str = "v1"
    api_key: Optional[str] = None  # Bearer key callers must present, disabled when unset
    strict_status_codes: bool = False

    @classmethod
    def load_from_yaml(cls, path: str) -> "Config":
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))

    @classmethod
    def load(cls, path: Optional[str] = None, environ: Optional[dict] = None) -> "Config":
        """Load the YAML file when it exists, then overlay secrets from the environment"""
        environ = os.environ if environ is None else environ
        if path and os.path.exists(path):
            config = cls.load_from_yaml(path)
        else:
            config = cls()
        return config.with_env_secrets(environ)

    def with_env_secrets(self, environ) -> "Config":
        data = self.model_dump()
        for env_name, (section, field) in ENV_SECRETS.items():
            value = environ.get(env_name)
            if not value:
                continue
            target = data[section] if section else data
            target[field] = value
        return Config(**data)
