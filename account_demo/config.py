"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
The menu itself takes no options; these settings only tune diagnostics and
the opt-in strict creation mode.
"""

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AccountDemoConfig(BaseSettings):
    """Bank account test menu configuration"""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNT_DEMO_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "ERROR"
    log_format: Literal["json", "text"] = "json"

    # Feature flags
    enable_event_logging: bool = True
    strict_create: bool = False  # Report invalid balances instead of defaulting

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value):
        return value.lower() if isinstance(value, str) else value


# Global configuration instance
config = AccountDemoConfig()


def get_config() -> AccountDemoConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> AccountDemoConfig:
    """Reload configuration from environment"""
    global config
    config = AccountDemoConfig()
    return config
