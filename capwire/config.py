"""
capwire - Configuration

Centralized configuration for the wiring layer.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from capwire.observability.logging import LoggingConfig
from capwire.observability.tracing import TracingConfig

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class DIConfig:
    """Dependency injection behaviour."""
    # Emit a debug event for every capability attached to an instance
    log_injections: bool = field(default_factory=lambda: os.getenv("CAPWIRE_LOG_INJECTIONS", "false").lower() == "true")
    # Wrap create_object calls in a span
    trace_factory: bool = field(default_factory=lambda: os.getenv("CAPWIRE_TRACE_FACTORY", "true").lower() == "true")


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    # Sub-configurations
    di: DIConfig = field(default_factory=DIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.env == Environment.DEVELOPMENT

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "di": {
                "log_injections": self.di.log_injections,
                "trace_factory": self.di.trace_factory,
            },
            "logging": {
                "level": self.logging.level,
                "json_format": self.logging.json_format,
            },
            "tracing": {
                "enabled": self.tracing.enabled,
                "sample_rate": self.tracing.sample_rate,
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
