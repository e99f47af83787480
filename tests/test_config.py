import pytest
from pydantic import ValidationError
from notify_relay.config import Config, EmailConfig, MQTTConfig


def test_mqtt_config_defaults():
    """Test MQTT configuration defaults match the firmware topic contract"""
    mqtt_config = MQTTConfig()
    assert mqtt_config.port == 8883
    assert mqtt_config.tls is True
    assert mqtt_config.topic == "jamur/firmware/new_available"
    assert mqtt_config.qos == 1
    assert mqtt_config.retain is True
    assert mqtt_config.username is None


def test_mqtt_config_rejects_invalid_qos():
    """Test QoS outside 0-2 is rejected"""
    with pytest.raises(ValidationError):
        MQTTConfig(qos=3)


def test_email_config_from_address():
    """Test sender display name is combined with the address"""
    email_config = EmailConfig(sender="alerts@example.com", sender_name="Farm")
    assert email_config.from_address == "Farm <alerts@example.com>"
    assert email_config.api_url == "https://api.resend.com/emails"


def test_config_load_from_yaml(tmp_path):
    """Test loading configuration from YAML file"""
    config_content = """
api_version: "v2"
mqtt:
  broker: "localhost"
  port: 1883
  tls: false
email:
  recipient: "ops@example.com"
"""
    config_file = tmp_path / "relay.yaml"
    config_file.write_text(config_content)

    config = Config.load_from_yaml(str(config_file))
    assert config.api_version == "v2"
    assert config.mqtt.broker == "localhost"
    assert config.mqtt.port == 1883
    assert config.mqtt.tls is False
    assert config.mqtt.topic == "jamur/firmware/new_available"
    assert config.email.recipient == "ops@example.com"
    assert config.strict_status_codes is False


def test_config_load_overlays_env_secrets(tmp_path):
    """Test secrets from the environment override the file"""
    config_file = tmp_path / "relay.yaml"
    config_file.write_text('mqtt:\n  username: "from-file"\n')
    environ = {
        "MQTT_USER_SECRET": "device-user",
        "MQTT_PASS_SECRET": "s3cret",
        "RESEND_API_KEY": "re_123",
        "RELAY_API_KEY": "caller-key",
    }

    config = Config.load(str(config_file), environ=environ)
    assert config.mqtt.username == "device-user"
    assert config.mqtt.password == "s3cret"
    assert config.email.api_key == "re_123"
    assert config.api_key == "caller-key"


def test_config_load_without_file_uses_defaults(tmp_path):
    """Test a missing config file falls back to defaults"""
    config = Config.load(str(tmp_path / "missing.yaml"), environ={})
    assert config == Config()


def test_config_load_ignores_empty_env_values():
    """Test empty environment variables do not clear configured values"""
    base = Config(email=EmailConfig(api_key="from-file"))
    config = base.with_env_secrets({"RESEND_API_KEY": ""})
    assert config.email.api_key == "from-file"


def test_config_load_empty_yaml(tmp_path):
    """Test an empty YAML file yields defaults"""
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")
    assert Config.load_from_yaml(str(config_file)) == Config()
