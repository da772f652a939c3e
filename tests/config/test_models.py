"""Tests for configuration models."""

from pathlib import Path

import pytest

from polyscm.config import InvalidConfigurationError, MissingConfigurationError, ScmConfig


class TestScmConfig:
    """Tests for ScmConfig model."""

    def test_defaults(self) -> None:
        """Test that executables default to their PATH names."""
        config = ScmConfig()

        assert config.git_executable == "git"
        assert config.hg_executable == "hg"
        assert config.svn_executable == "svn"
        assert config.svnadmin_executable == "svnadmin"
        assert config.command_timeout is None
        assert config.strict_parsing is False

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that POLYSCM_ variables override the defaults."""
        monkeypatch.setenv("POLYSCM_HG_EXECUTABLE", "chg")
        monkeypatch.setenv("POLYSCM_COMMAND_TIMEOUT", "30")
        monkeypatch.setenv("POLYSCM_STRICT_PARSING", "true")

        config = ScmConfig()

        assert config.hg_executable == "chg"
        assert config.command_timeout == 30.0
        assert config.strict_parsing is True

    def test_executable_path_is_expanded(self, tmp_path: Path) -> None:
        """Test that executables given as paths become absolute."""
        config = ScmConfig(git_executable=str(tmp_path / "bin" / ".." / "git"))

        assert config.git_executable == str((tmp_path / "git").resolve())

    def test_empty_executable(self) -> None:
        """Test that an empty executable is rejected."""
        with pytest.raises(InvalidConfigurationError, match="must not be empty"):
            ScmConfig(svn_executable="  ")

    @pytest.mark.parametrize("timeout", [0, -5])
    def test_non_positive_timeout(self, timeout: float) -> None:
        """Test that the timeout must be positive."""
        with pytest.raises(InvalidConfigurationError, match="must be positive"):
            ScmConfig(command_timeout=timeout)


class TestEnvFile:
    """Tests for loading configuration from env files."""

    def test_custom_env_file(self, tmp_path: Path) -> None:
        """Test that an explicit env file is read."""
        env_file = tmp_path / "custom.env"
        env_file.write_text("POLYSCM_GIT_EXECUTABLE=git2\nPOLYSCM_COMMAND_TIMEOUT=5\n")

        config = ScmConfig(env_file=str(env_file))

        assert config.git_executable == "git2"
        assert config.command_timeout == 5.0

    def test_custom_env_file_wins_over_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an explicit env file takes precedence over the environment."""
        env_file = tmp_path / "custom.env"
        env_file.write_text("POLYSCM_SVN_EXECUTABLE=svn-from-file\n")
        monkeypatch.setenv("POLYSCM_SVN_EXECUTABLE", "svn-from-env")

        config = ScmConfig(env_file=env_file)

        assert config.svn_executable == "svn-from-file"

    def test_missing_env_file(self, tmp_path: Path) -> None:
        """Test that a missing explicit env file is an error."""
        with pytest.raises(MissingConfigurationError, match="not found"):
            ScmConfig(env_file=str(tmp_path / "missing.env"))

    def test_default_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that .env.polyscm in the current directory is picked up."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env.polyscm").write_text("POLYSCM_HG_EXECUTABLE=chg\n")

        config = ScmConfig()

        assert config.hg_executable == "chg"
        assert ScmConfig.find_env_file() == (tmp_path / ".env.polyscm").absolute()

    def test_find_env_file_none(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that no env file is found in an empty directory."""
        monkeypatch.chdir(tmp_path)

        assert ScmConfig.find_env_file() is None
