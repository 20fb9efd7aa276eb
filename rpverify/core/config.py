"""Application configuration management.

Loads configuration from config.yaml files and environment variables.
Environment variables take precedence over config file settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from rpverify.core.scenarios import JourneyType, LevelOfAssurance

# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".rpverify"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

# Environment variable prefix
ENV_PREFIX = "RPVERIFY_"


@dataclass
class VerifySettings:
    """Connection to the verify service provider."""

    service_provider_host: str = "http://localhost:50400"
    journey_type: JourneyType = JourneyType.IDENTITY
    level_of_assurance: LevelOfAssurance = LevelOfAssurance.LEVEL_2
    entity_id: str | None = None
    timeout: float = 30.0
    form_template: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VerifySettings:
        """Create VerifySettings from a dictionary."""
        return cls(
            service_provider_host=data.get("service_provider_host", "http://localhost:50400"),
            journey_type=JourneyType(data.get("journey_type", JourneyType.IDENTITY)),
            level_of_assurance=LevelOfAssurance(
                data.get("level_of_assurance", LevelOfAssurance.LEVEL_2)
            ),
            entity_id=data.get("entity_id"),
            timeout=float(data.get("timeout") or 30.0),
            form_template=data.get("form_template"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "service_provider_host": self.service_provider_host,
            "journey_type": str(self.journey_type),
            "level_of_assurance": str(self.level_of_assurance),
            "entity_id": self.entity_id,
            "timeout": self.timeout,
            "form_template": self.form_template,
        }


@dataclass
class ServerSettings:
    """Demo relying party server settings."""

    host: str = "127.0.0.1"
    port: int = 3200
    debug: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerSettings:
        """Create ServerSettings from a dictionary."""
        return cls(
            host=data.get("host", "127.0.0.1"),
            port=data.get("port", 3200),
            debug=data.get("debug", False),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
        }


@dataclass
class LoggingSettings:
    """Logging settings."""

    level: str = "INFO"
    log_payloads: bool = False
    log_file: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingSettings:
        """Create LoggingSettings from a dictionary."""
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            log_payloads=data.get("log_payloads", False),
            log_file=data.get("log_file"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "level": self.level,
            "log_payloads": self.log_payloads,
            "log_file": self.log_file,
        }


@dataclass
class AppConfig:
    """Main application configuration."""

    verify: VerifySettings = field(default_factory=VerifySettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    config_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: Path | None = None) -> AppConfig:
        """Create AppConfig from a dictionary."""
        return cls(
            verify=VerifySettings.from_dict(data.get("verify") or {}),
            server=ServerSettings.from_dict(data.get("server") or {}),
            logging=LoggingSettings.from_dict(data.get("logging") or {}),
            config_path=config_path,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "verify": self.verify.to_dict(),
            "server": self.server.to_dict(),
            "logging": self.logging.to_dict(),
        }

    def save(self, path: Path | None = None) -> Path:
        """Save configuration to a YAML file.

        Args:
            path: Path to save to. Uses config_path or default if not specified.

        Returns:
            Path the configuration was written to.
        """
        save_path = path or self.config_path or DEFAULT_CONFIG_FILE
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)

        return save_path


def _get_env_bool(key: str, default: bool) -> bool:
    """Get a boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _get_env_int(key: str, default: int) -> int:
    """Get an integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_config_path() -> Path:
    """Get the config file path, honouring RPVERIFY_CONFIG."""
    env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
    return Path(env_path).expanduser() if env_path else DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load application configuration.

    Configuration is loaded in this order (later values override earlier):
    1. Default values
    2. config.yaml file (if exists)
    3. Environment variables

    Args:
        config_path: Path to config file. Uses default if not specified.

    Returns:
        AppConfig with merged settings.

    Raises:
        ValueError: If the config file or an environment variable holds an
            invalid journey type or level of assurance.
    """
    config = AppConfig()

    file_path = config_path or get_config_path()
    if file_path.exists():
        with open(file_path) as f:
            data = yaml.safe_load(f) or {}
        config = AppConfig.from_dict(data, config_path=file_path)

    # Verify service provider settings
    verify = config.verify

    if os.environ.get(f"{ENV_PREFIX}SERVICE_PROVIDER_HOST"):
        verify.service_provider_host = os.environ[f"{ENV_PREFIX}SERVICE_PROVIDER_HOST"]

    if os.environ.get(f"{ENV_PREFIX}JOURNEY_TYPE"):
        verify.journey_type = JourneyType(os.environ[f"{ENV_PREFIX}JOURNEY_TYPE"].lower())

    if os.environ.get(f"{ENV_PREFIX}LEVEL_OF_ASSURANCE"):
        verify.level_of_assurance = LevelOfAssurance(
            os.environ[f"{ENV_PREFIX}LEVEL_OF_ASSURANCE"].upper()
        )

    if os.environ.get(f"{ENV_PREFIX}ENTITY_ID"):
        verify.entity_id = os.environ[f"{ENV_PREFIX}ENTITY_ID"]

    verify.timeout = _get_env_float(f"{ENV_PREFIX}TIMEOUT", verify.timeout)

    # Server settings
    if os.environ.get(f"{ENV_PREFIX}HOST"):
        config.server.host = os.environ[f"{ENV_PREFIX}HOST"]

    config.server.port = _get_env_int(f"{ENV_PREFIX}PORT", config.server.port)
    config.server.debug = _get_env_bool(f"{ENV_PREFIX}DEBUG", config.server.debug)

    # Logging settings
    if os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        config.logging.level = os.environ[f"{ENV_PREFIX}LOG_LEVEL"].upper()

    config.logging.log_payloads = _get_env_bool(
        f"{ENV_PREFIX}LOG_PAYLOADS", config.logging.log_payloads
    )

    if os.environ.get(f"{ENV_PREFIX}LOG_FILE"):
        config.logging.log_file = os.environ[f"{ENV_PREFIX}LOG_FILE"]

    return config


def get_default_config_yaml() -> str:
    """Get the default config.yaml content as a string.

    Useful for generating example configuration files.
    """
    return """\
# rpverify Configuration File
# Environment variables override these settings (prefix: RPVERIFY_)

verify:
  # URL the verify service provider is running on
  service_provider_host: "http://localhost:50400"

  # "identity" (no matching service adapter) or "matching"
  journey_type: "identity"

  # LEVEL_1 or LEVEL_2; also the minimum level accepted in responses
  level_of_assurance: "LEVEL_2"

  # Only needed if the service provider is multi-tenanted
  # entity_id: "http://service-entity-id"

  # Request timeout in seconds
  timeout: 30

  # Jinja template to render the authn request form with
  # form_template: "verify/form.html"

server:
  host: "127.0.0.1"
  port: 3200
  debug: false

logging:
  # ERROR, INFO, DEBUG or TRACE
  level: "INFO"

  # Log SAML payloads unredacted at TRACE level (they identify users)
  log_payloads: false

  # log_file: ~/.rpverify/rpverify.log
"""
