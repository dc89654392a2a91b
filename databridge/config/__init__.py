"""
Configuration management for the DataBridge client.
"""

from databridge.config.loader import (
    ConfigLoader,
    DataBridgeConfig,
    ApiConfig,
    PollingConfig,
    ApplicationsConfig,
    LoggingConfig,
    MigrationPlan,
)

__all__ = [
    "ConfigLoader",
    "DataBridgeConfig",
    "ApiConfig",
    "PollingConfig",
    "ApplicationsConfig",
    "LoggingConfig",
    "MigrationPlan",
]
