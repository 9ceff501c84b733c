"""Application configuration loading and validation."""

from hashtik.configs.loader import (
    AppConfig,
    GenerationConfig,
    LoggingConfig,
    OutputConfig,
    PreviewConfig,
    RelayConfig,
    RenderConfig,
    SettingsConfig,
    load_config,
)
from hashtik.errors import ConfigError

__all__ = [
    "AppConfig",
    "ConfigError",
    "GenerationConfig",
    "LoggingConfig",
    "OutputConfig",
    "PreviewConfig",
    "RelayConfig",
    "RenderConfig",
    "SettingsConfig",
    "load_config",
]
