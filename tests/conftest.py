"""Shared fixtures for polyscm tests."""

import pytest


@pytest.fixture(autouse=True)
def vcs_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give VCS commands run by the tests a committer identity.

    Args:
        monkeypatch: Pytest monkeypatch fixture
    """
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("HGUSER", "Test User <test@example.com>")

    # Keep the developer's settings out of ScmConfig
    for name in (
        "POLYSCM_GIT_EXECUTABLE",
        "POLYSCM_HG_EXECUTABLE",
        "POLYSCM_SVN_EXECUTABLE",
        "POLYSCM_SVNADMIN_EXECUTABLE",
        "POLYSCM_COMMAND_TIMEOUT",
        "POLYSCM_STRICT_PARSING",
    ):
        monkeypatch.delenv(name, raising=False)
