"""Configuration models."""

import os
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from polyscm.config.exceptions import InvalidConfigurationError, MissingConfigurationError

ENV_FILES = [".env.polyscm", ".env"]


class ScmConfig(BaseSettings):
    """Configuration for polyscm repositories."""

    # Executables
    git_executable: str = Field(default="git", description="Git binary name or path")
    hg_executable: str = Field(default="hg", description="Mercurial binary name or path")
    svn_executable: str = Field(default="svn", description="SubVersion client binary name or path")
    svnadmin_executable: str = Field(
        default="svnadmin",
        description="SubVersion repository administration binary name or path",
    )

    # Subprocess behaviour
    command_timeout: float | None = Field(
        default=None,
        description="Seconds before a VCS command is killed (no limit when unset)",
    )

    # Parsing behaviour
    strict_parsing: bool = Field(
        default=False,
        description="Raise on unrecognized status codes instead of reporting them as unknown",
    )

    model_config = SettingsConfigDict(
        env_file=ENV_FILES,
        env_file_encoding="utf-8",
        env_prefix="POLYSCM_",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(
        self,
        _env_file: str | Path | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize configuration.

        Args:
            _env_file: Optional path to custom env file (use env_file for public API)
            **kwargs: Additional configuration values

        Raises:
            MissingConfigurationError: If the env file is specified but does not exist
        """
        env_file = kwargs.pop("env_file", _env_file)

        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.exists():
                raise MissingConfigurationError(f"Environment file not found: {env_file}")
            # settings_customise_sources picks this up from init_settings
            kwargs["_custom_env_file"] = env_path

        super().__init__(**kwargs)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to support a custom env file.

        An explicit env file replaces the default ``.env.polyscm`` / ``.env``
        lookup and takes precedence over the process environment.

        Args:
            settings_cls: The settings class being instantiated
            init_settings: Settings from __init__ arguments
            env_settings: Settings from environment variables
            dotenv_settings: Settings from .env files
            file_secret_settings: Settings from secret files

        Returns:
            Tuple of settings sources in priority order
        """
        init_kwargs = init_settings.init_kwargs  # type: ignore[attr-defined]
        custom_env_path = init_kwargs.get("_custom_env_file")

        if custom_env_path is not None:
            custom_dotenv = DotEnvSettingsSource(
                settings_cls,
                env_file=custom_env_path,
                env_file_encoding="utf-8",
            )
            return (init_settings, custom_dotenv, env_settings, file_secret_settings)

        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @field_validator(
        "git_executable",
        "hg_executable",
        "svn_executable",
        "svnadmin_executable",
    )
    @classmethod
    def expand_executable(cls, v: str) -> str:
        """Expand executables given as paths.

        Bare program names are left for ``PATH`` lookup.

        Args:
            v: Executable name or path

        Returns:
            The program name, or the absolute path when a path was given

        Raises:
            InvalidConfigurationError: If the value is empty
        """
        v = v.strip()
        if not v:
            raise InvalidConfigurationError("Executable must not be empty")
        if v.startswith("~") or os.sep in v or (os.altsep and os.altsep in v):
            return str(Path(v).expanduser().resolve())
        return v

    @field_validator("command_timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Ensure the timeout is positive.

        Args:
            v: Timeout in seconds

        Returns:
            The timeout

        Raises:
            InvalidConfigurationError: If the timeout is zero or negative
        """
        if v is not None and v <= 0:
            raise InvalidConfigurationError(f"command_timeout must be positive, got {v}")
        return v

    @staticmethod
    def find_env_file() -> Path | None:
        """Find the environment file being used.

        Checks for .env.polyscm and .env in current directory in that order.

        Returns:
            Path to the env file if found, None otherwise
        """
        for env_file in ENV_FILES:
            path = Path(env_file)
            if path.exists():
                return path.absolute()
        return None
