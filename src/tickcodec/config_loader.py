"""Configuration loader with Pydantic validation and environment variable interpolation."""

from __future__ import annotations

import os
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables at module level
load_dotenv(find_dotenv(usecwd=True))

from tickcodec.constants import (
    DEFAULT_ARCHIVE_EXTENSION,
    DEFAULT_DATA_ROOT,
    DEFAULT_MAX_FAILURES_RETAINED,
    DEFAULT_MAX_WORKERS,
    FeedMode,
    LogLevel,
    Resolution,
    SecurityType,
)


def interpolate_env_vars(value: Any) -> Any:
    """
    Interpolate environment variables in string values.

    Supports formats:
    - ${VAR_NAME} - replaced by the variable, empty string if unset
    - ${VAR_NAME:default} - optional with default value
    """
    if not isinstance(value, str):
        return value

    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value
        elif default is not None:
            return default
        else:
            return ""

    return re.sub(pattern, replacer, value)


def process_config_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively process config dict to interpolate env vars."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = process_config_dict(value)
        elif isinstance(value, list):
            result[key] = [
                process_config_dict(item) if isinstance(item, dict) else interpolate_env_vars(item)
                for item in value
            ]
        else:
            result[key] = interpolate_env_vars(value)
    return result


# ============================================
# Pydantic Configuration Models
# ============================================


class EnvironmentConfig(BaseModel):
    """Environment and runtime settings."""

    log_level: LogLevel = LogLevel.INFO
    feed_mode: FeedMode = FeedMode.BACKTESTING
    data_root: str = DEFAULT_DATA_ROOT
    archive_extension: str = DEFAULT_ARCHIVE_EXTENSION

    @field_validator("archive_extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        """Strip a leading dot and reject empty extensions."""
        v = v.strip().lstrip(".")
        if not v:
            raise ValueError("archive_extension must not be empty")
        return v

    @field_validator("data_root")
    @classmethod
    def validate_data_root(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("data_root must not be empty")
        return v


class DecodingConfig(BaseModel):
    """Line decoding settings."""

    max_workers: int = DEFAULT_MAX_WORKERS
    strict: bool = False
    max_failures_retained: int = DEFAULT_MAX_FAILURES_RETAINED

    @field_validator("max_workers", "max_failures_retained")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate positive integers."""
        if v < 1:
            raise ValueError(f"Value must be at least 1, got: {v}")
        return v


class SubscriptionConfig(BaseModel):
    """One subscribed instrument."""

    symbol: str
    mapped_symbol: str = ""
    security_type: SecurityType
    resolution: Resolution = Resolution.MINUTE
    price_scale_factor: Decimal = Decimal("1")

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("symbol must not be empty")
        return v

    @field_validator("price_scale_factor", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        """Convert numeric values to Decimal."""
        if isinstance(v, Decimal):
            return v
        try:
            return Decimal(str(v))
        except InvalidOperation as e:
            raise ValueError(f"Invalid price_scale_factor: {v}") from e

    @field_validator("price_scale_factor")
    @classmethod
    def validate_scale_positive(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError(f"price_scale_factor must be positive, got: {v}")
        return v

    @model_validator(mode="after")
    def default_mapped_symbol(self) -> SubscriptionConfig:
        """Fall back to the subscribed symbol when no mapping is given."""
        if not self.mapped_symbol:
            self.mapped_symbol = self.symbol
        return self


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    decoding: DecodingConfig = Field(default_factory=DecodingConfig)
    subscriptions: list[SubscriptionConfig] = Field(default_factory=list)

    @field_validator("subscriptions")
    @classmethod
    def validate_unique_symbols(cls, v: list[SubscriptionConfig]) -> list[SubscriptionConfig]:
        """Reject the same symbol subscribed twice."""
        seen: set[str] = set()
        for sub in v:
            key = sub.symbol.upper()
            if key in seen:
                raise ValueError(f"Duplicate subscription for symbol: {sub.symbol}")
            seen.add(key)
        return v

    def get_subscription(self, symbol: str) -> SubscriptionConfig:
        """
        Look up a subscription by symbol (case-insensitive).

        Raises:
            KeyError: If no subscription matches.
        """
        for sub in self.subscriptions:
            if sub.symbol.upper() == symbol.upper():
                return sub
        available = ", ".join(s.symbol for s in self.subscriptions) or "none"
        raise KeyError(f"No subscription for '{symbol}'. Configured: {available}")

    @property
    def is_live(self) -> bool:
        """Check if data comes from the live transport."""
        return self.environment.feed_mode == FeedMode.LIVE_TRADING


# ============================================
# Configuration Loader
# ============================================


class ConfigLoader:
    """Load and validate configuration from YAML files with env var interpolation."""

    def __init__(self, config_path: str | Path) -> None:
        """
        Initialize config loader.

        Args:
            config_path: Path to the YAML configuration file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """
        Load and validate configuration.

        Returns:
            Validated AppConfig instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            pydantic.ValidationError: If config validation fails.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        processed_config = process_config_dict(raw_config)

        self._config = AppConfig.model_validate(processed_config)

        return self._config

    @property
    def config(self) -> AppConfig:
        """Get loaded config, loading if necessary."""
        if self._config is None:
            return self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Force reload configuration from disk."""
        self._config = None
        return self.load()


def load_config(config_path: str | Path) -> AppConfig:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated AppConfig instance.
    """
    loader = ConfigLoader(config_path)
    return loader.load()


def load_config_with_overrides(
    config_path: str | Path,
    *,
    feed_mode: str | None = None,
    data_root: str | None = None,
    log_level: str | None = None,
) -> AppConfig:
    """
    Load configuration with CLI overrides.

    Args:
        config_path: Path to the YAML configuration file.
        feed_mode: Override feed mode.
        data_root: Override data root directory.
        log_level: Override log level.

    Returns:
        Validated AppConfig instance with overrides applied.
    """
    config = load_config(config_path)

    env_updates: dict[str, Any] = {}

    if feed_mode is not None:
        env_updates["feed_mode"] = FeedMode(feed_mode.lower())

    if data_root is not None:
        env_updates["data_root"] = data_root

    if log_level is not None:
        env_updates["log_level"] = LogLevel(log_level.upper())

    if env_updates:
        return config.model_copy(
            update={"environment": config.environment.model_copy(update=env_updates)}
        )

    return config
