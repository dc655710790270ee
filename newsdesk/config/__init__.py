"""Configuration management for the newsdesk pipeline."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import (
    ConfigModel,
    DiscoveryConfig,
    LoggingConfig,
    PostgresConfig,
    RewriteConfig,
    SchedulerConfig,
    ServiceConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "DEFAULT_CONFIG_PATH",
    "DiscoveryConfig",
    "LoggingConfig",
    "PostgresConfig",
    "RewriteConfig",
    "SchedulerConfig",
    "ServiceConfig",
    "load_config",
    "save_config",
]
