"""Common VCS exceptions for polyscm.

Operational failures (a commit with nothing staged, a rejected push) are
reported as ``False`` by the repository methods. The exceptions below cover
the cases where continuing would hand the caller something unusable.
"""

from pathlib import Path


class VCSError(Exception):
    """Base exception for all VCS-related errors."""


class UnknownSCMError(VCSError, ValueError):
    """Raised when the SCM of a path or URI cannot be determined."""


class UnsupportedOperationError(VCSError, ValueError):
    """Raised when a VCS cannot perform the requested operation at all."""


class RepositoryInitError(VCSError):
    """Raised when a repository could not be created."""

    def __init__(self, message: str, path: str | Path) -> None:
        super().__init__(message)
        self.path = Path(path)


class CloneError(VCSError):
    """Raised when a remote repository could not be cloned."""

    def __init__(self, message: str, uri: str) -> None:
        super().__init__(message)
        self.uri = uri


class VCSOperationError(VCSError):
    """Raised when a VCS command could not be run."""


class VCSTimeoutError(VCSOperationError):
    """Raised when a VCS command exceeds the configured timeout."""


class UnparseableOutputError(VCSError):
    """Raised when VCS output does not match the expected format."""

    def __init__(self, message: str, line: str | None = None) -> None:
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)
        self.line = line
