"""Configuration management for polyscm."""

from polyscm.config.exceptions import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingConfigurationError,
)
from polyscm.config.models import ScmConfig

__all__ = [
    "ConfigurationError",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "ScmConfig",
]
