"""Configuration management with validation.

The registrar has no configuration file. Runtime settings come from the
Lambda function environment and are validated once per process, so a
misconfigured deployment fails on its first invocation instead of
producing half-applied DNS changes.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Tag keys recognized on instances
HOSTED_ZONE_TAG = "HostedZone"
HOST_NAME_TAG = "HostName"
NAME_TAG = "Name"

# Every created record set carries this TTL
RECORD_TTL_SECONDS = 300

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_VERSION = "dev"

VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
VALID_REGION_PATTERN = r"^[a-z]{2}(-[a-z]+)+-\d$"


@dataclass(frozen=True)
class Config:
    """Registrar configuration loaded from environment variables.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing mid-invocation.
    """

    # None lets boto3 resolve the region from its own chain
    region: str | None = None

    log_level: str = DEFAULT_LOG_LEVEL
    json_logging: bool = True

    # Stamped on every provenance record
    version: str = DEFAULT_VERSION

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        import re

        errors: list[str] = []

        if self.region is not None and not re.match(VALID_REGION_PATTERN, self.region):
            errors.append(f"AWS_REGION must be a valid AWS region: {self.region}")

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {list(VALID_LOG_LEVELS)}: {self.log_level}")

        if not self.version:
            errors.append("REGISTRAR_VERSION must not be empty")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @property
    def log_level_number(self) -> int:
        """Numeric logging level for the configured level name."""
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            AWS_REGION: Region for the EC2 and Route 53 clients (default: boto3 chain)
            LOG_LEVEL: Root log level (default: INFO)
            ENABLE_JSON_LOGGING: If "false", keep plain text logs (default: true)
            REGISTRAR_VERSION: Version stamped on audit records (default: dev)
        """

        def get_bool(key: str, default: bool) -> bool:
            value = os.environ.get(key, "").lower()
            if not value:
                return default
            return value in ("true", "1", "yes")

        return cls(
            region=os.environ.get("AWS_REGION") or None,
            log_level=os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            json_logging=get_bool("ENABLE_JSON_LOGGING", True),
            version=os.environ.get("REGISTRAR_VERSION", DEFAULT_VERSION),
        )
