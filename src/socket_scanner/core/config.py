"""Configuration management for the scanner.

Loads configuration from environment variables using Pydantic models.
Every setting has a default; environment variables override them. The
configuration is resolved once per scan and passed explicitly to the
classifier, so nothing below reads the environment after load.

Provides:
- Thresholds: Validated fatal/warn score cut points
- resolve_thresholds: Turn raw overrides into Thresholds, never raising
- MissingCredentialPolicy: What a scan does when no API key is available
- Config: Pydantic model with all application settings
- load_config: Factory function to create Config instance
"""

import math
import os
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = structlog.get_logger()

DEFAULT_FATAL_THRESHOLD = 0.3
DEFAULT_WARN_THRESHOLD = 0.5

TOKEN_ENV = "SOCKET_SCANNER_TOKEN"
LEGACY_TOKEN_ENV = "NI_SOCKETDEV_TOKEN"
FATAL_THRESHOLD_ENV = "SOCKET_SCANNER_FATAL_THRESHOLD"
WARN_THRESHOLD_ENV = "SOCKET_SCANNER_WARN_THRESHOLD"
POLICY_ENV = "SOCKET_SCANNER_MISSING_TOKEN_POLICY"


class Thresholds(BaseModel):
    """Score cut points. Scores below ``fatal`` block, below ``warn`` prompt.

    Invariant: 0 <= fatal < warn <= 1
    """

    model_config = ConfigDict(frozen=True)

    fatal: float = DEFAULT_FATAL_THRESHOLD
    warn: float = DEFAULT_WARN_THRESHOLD

    @model_validator(mode="after")
    def _check_order(self) -> "Thresholds":
        if not (0.0 <= self.fatal < self.warn <= 1.0):
            raise ValueError(
                f"thresholds must satisfy 0 <= fatal < warn <= 1 "
                f"(got fatal={self.fatal}, warn={self.warn})"
            )
        return self


def _parse_threshold(name: str, raw: Any, default: float) -> float:
    """Parse one override, falling back to the default with a warning."""
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        return default

    if isinstance(raw, bool):
        logger.warning("invalid_threshold", threshold=name, value=raw, default=default)
        return default

    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("invalid_threshold", threshold=name, value=raw, default=default)
        return default

    if math.isnan(value) or not 0.0 <= value <= 1.0:
        logger.warning(
            "threshold_out_of_range", threshold=name, value=raw, default=default
        )
        return default

    return value


def resolve_thresholds(fatal_override: Any = None, warn_override: Any = None) -> Thresholds:
    """Resolve threshold overrides into a valid Thresholds instance.

    Each override may be a number, a numeric string, or None. Anything that
    is not a number in [0, 1] is replaced by its default. If the surviving
    pair breaks ``fatal < warn`` both fall back to the defaults.

    Args:
        fatal_override: Raw override for the fatal cut point
        warn_override: Raw override for the warn cut point

    Returns:
        Thresholds that always satisfy the ordering invariant
    """
    fatal = _parse_threshold("fatal", fatal_override, DEFAULT_FATAL_THRESHOLD)
    warn = _parse_threshold("warn", warn_override, DEFAULT_WARN_THRESHOLD)

    if fatal >= warn:
        logger.warning(
            "threshold_order_invalid",
            fatal=fatal,
            warn=warn,
            default_fatal=DEFAULT_FATAL_THRESHOLD,
            default_warn=DEFAULT_WARN_THRESHOLD,
        )
        return Thresholds()

    return Thresholds(fatal=fatal, warn=warn)


class MissingCredentialPolicy(str, Enum):
    """Behaviour of a scan when no API key can be resolved.

    ERROR: raise MissingCredentialError (blocks the install)
    SKIP: log a warning and report no advisories
    """

    ERROR = "error"
    SKIP = "skip"


def _env_token() -> str:
    return os.getenv(TOKEN_ENV) or os.getenv(LEGACY_TOKEN_ENV, "")


class Config(BaseModel):
    """Application configuration loaded from the environment.

    Attributes:
        api_token: Socket.dev API key override (SOCKET_SCANNER_TOKEN, or the
            legacy NI_SOCKETDEV_TOKEN)
        fatal_threshold: Raw fatal cut point override, validated on use
        warn_threshold: Raw warn cut point override, validated on use
        api_base_url: Risk service base URL
        request_timeout: Total timeout per risk service request, in seconds
        missing_credential_policy: error (default) or skip
        log_level: Log level name or number (LOG_LEVEL)
    """

    api_token: str = Field(default_factory=_env_token)

    fatal_threshold: str | None = Field(
        default_factory=lambda: os.getenv(FATAL_THRESHOLD_ENV)
    )
    warn_threshold: str | None = Field(
        default_factory=lambda: os.getenv(WARN_THRESHOLD_ENV)
    )

    api_base_url: str = Field(default="https://api.socket.dev/v0")
    request_timeout: float = Field(default=30.0)

    missing_credential_policy: MissingCredentialPolicy = Field(
        default_factory=lambda: os.getenv(POLICY_ENV, MissingCredentialPolicy.ERROR.value)
    )
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "info"))

    @field_validator("fatal_threshold", "warn_threshold", mode="before")
    @classmethod
    def _stringify_threshold(cls, value: Any) -> str | None:
        # Validation of the value itself happens in resolve_thresholds
        if value is None:
            return None
        return str(value)

    @field_validator("missing_credential_policy", mode="before")
    @classmethod
    def _coerce_policy(cls, value: Any) -> Any:
        if isinstance(value, MissingCredentialPolicy):
            return value
        normalized = str(value).strip().lower()
        if normalized not in {p.value for p in MissingCredentialPolicy}:
            logger.warning(
                "invalid_missing_credential_policy",
                value=value,
                default=MissingCredentialPolicy.ERROR.value,
            )
            return MissingCredentialPolicy.ERROR
        return normalized

    def thresholds(self) -> Thresholds:
        """Resolve the threshold overrides (logs and defaults on bad input)."""
        return resolve_thresholds(self.fatal_threshold, self.warn_threshold)


def load_config() -> Config:
    """Load configuration from the environment.

    Returns:
        Populated Config instance
    """
    return Config()
