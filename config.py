"""
DecoExt - Configuration

Centralized configuration management for the service runtime.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from core.errors import RuntimeConfigError

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class InitFailurePolicy(Enum):
    """What happens to a service whose init chain failed."""
    RETRY = "retry"    # in-flight slot is cleared, the next init() starts over
    STICKY = "sticky"  # failure is kept, every later init() re-raises it


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    json_format: bool = field(
        default_factory=lambda: os.getenv("LOG_FORMAT", "console").lower() == "json"
    )
    service_name: str = field(default_factory=lambda: os.getenv("DECOEXT_SERVICE_NAME", "decoext"))

    def __post_init__(self) -> None:
        valid = {level.value for level in LogLevel}
        if self.level not in valid:
            raise RuntimeConfigError(
                f"Unsupported log level '{self.level}'",
                config_key="LOG_LEVEL",
                actual_value=self.level,
                suggestions=[f"Use one of: {', '.join(sorted(valid))}"],
            )


@dataclass
class RuntimeConfig:
    """Service runtime behaviour."""
    init_failure_policy: InitFailurePolicy = field(
        default_factory=lambda: _parse_policy(os.getenv("DECOEXT_INIT_FAILURE_POLICY", "retry"))
    )
    # Raise instead of constructing a throwaway object for unregistered dependencies
    strict_dependencies: bool = field(
        default_factory=lambda: _env_bool("DECOEXT_STRICT_DEPENDENCIES")
    )


def _parse_policy(raw: str) -> InitFailurePolicy:
    try:
        return InitFailurePolicy(raw.strip().lower())
    except ValueError:
        raise RuntimeConfigError(
            f"Unknown init failure policy '{raw}'",
            config_key="DECOEXT_INIT_FAILURE_POLICY",
            expected_type=InitFailurePolicy,
            actual_value=raw,
            suggestions=["Use 'retry' or 'sticky'"],
        ) from None


def _parse_environment(raw: str) -> Environment:
    try:
        return Environment(raw.strip().lower())
    except ValueError:
        raise RuntimeConfigError(
            f"Unknown environment '{raw}'",
            config_key="ENVIRONMENT",
            actual_value=raw,
        ) from None


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(
        default_factory=lambda: _parse_environment(os.getenv("ENVIRONMENT", "development"))
    )
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.env == Environment.DEVELOPMENT

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (for diagnostics)."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "logging": {
                "level": self.logging.level,
                "json_format": self.logging.json_format,
                "service_name": self.logging.service_name,
            },
            "runtime": {
                "init_failure_policy": self.runtime.init_failure_policy.value,
                "strict_dependencies": self.runtime.strict_dependencies,
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
