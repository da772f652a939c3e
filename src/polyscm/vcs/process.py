"""Process execution for VCS executables.

Commands are passed to the OS as argument lists, never through a shell, and
always run in an explicit working directory instead of changing the directory
of the current process.
"""

import logging
import os
import shlex
import subprocess
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import Path
from types import TracebackType

from polyscm.vcs.exceptions import VCSOperationError, VCSTimeoutError

logger = logging.getLogger(__name__)

Argument = str | int | float | Path | None

# A value of None removes the variable from the inherited environment
Environment = Mapping[str, str | None]


def build_command(program: str | Path, arguments: Iterable[Argument]) -> list[str]:
    """Build an argument list, coercing arguments to text and dropping empty ones.

    Args:
        program: The name or path of the program
        arguments: Arguments for the program

    Returns:
        The command as a list of strings
    """
    command = [str(program)]
    for argument in arguments:
        if argument is None:
            continue
        text = str(argument)
        if text:
            command.append(text)
    return command


def build_environment(overrides: Environment | None) -> dict[str, str] | None:
    """Apply overrides to the environment of the current process.

    Args:
        overrides: Variables to set, or to remove when their value is None

    Returns:
        The environment for a child process, or None to inherit it unchanged
    """
    if not overrides:
        return None

    environment = dict(os.environ)
    for name, value in overrides.items():
        if value is None:
            environment.pop(name, None)
        else:
            environment[name] = value
    return environment


def run(
    program: str | Path,
    *arguments: Argument,
    cwd: str | Path | None = None,
    timeout: float | None = None,
    env: Environment | None = None,
) -> bool:
    """Run a program to completion.

    The program inherits the standard streams of the current process.

    Args:
        program: The name or path of the program
        *arguments: Arguments for the program
        cwd: Working directory for the program
        timeout: Seconds to wait before killing the program
        env: Environment overrides for the program

    Returns:
        True if the program exited with status zero

    Raises:
        VCSOperationError: If the program could not be started
        VCSTimeoutError: If the program ran longer than ``timeout``
    """
    command = build_command(program, arguments)
    command_line = shlex.join(command)
    logger.debug(f"Running: {command_line} (cwd={cwd or Path.cwd()})")

    try:
        completed = subprocess.run(
            command,
            cwd=cwd,
            env=build_environment(env),
            check=False,
            timeout=timeout,
        )
    except OSError as e:
        raise VCSOperationError(f"Unable to run {command_line}: {e}") from e
    except subprocess.TimeoutExpired as e:
        logger.warning(f"Timed out after {timeout}s: {command_line}")
        raise VCSTimeoutError(f"Command timed out after {timeout}s: {command_line}") from e

    if completed.returncode != 0:
        logger.debug(f"Exited with status {completed.returncode}: {command_line}")
    return completed.returncode == 0


class LineStream:
    """The standard output of a running program, read lazily line by line.

    A stream can be read once. Reading it to the end, leaving a ``with`` block
    or calling :meth:`close` releases the process; a process that is still
    running when the stream is closed is killed.
    """

    def __init__(
        self,
        command: list[str],
        cwd: str | Path | None = None,
        timeout: float | None = None,
        env: Environment | None = None,
    ) -> None:
        self.command = command
        self.cwd = cwd
        self.timeout = timeout
        self.env = env
        self.returncode: int | None = None
        self._exhausted = False
        self._expired = False
        self._closed = False

        try:
            self._process = subprocess.Popen(
                command,
                cwd=cwd,
                env=build_environment(env),
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise VCSOperationError(f"Unable to run {shlex.join(command)}: {e}") from e

        self._timer: threading.Timer | None = None
        if timeout is not None:
            self._timer = threading.Timer(timeout, self._expire)
            self._timer.daemon = True
            self._timer.start()

    @property
    def success(self) -> bool:
        """Whether the program has exited with status zero."""
        return self.returncode == 0

    def __iter__(self) -> Iterator[str]:
        return self._lines()

    def _lines(self) -> Iterator[str]:
        stdout = self._process.stdout
        if stdout is None or self._closed:
            return
        try:
            for line in stdout:
                yield line.rstrip("\r\n")
            self._exhausted = True
        finally:
            self.close()

    def _expire(self) -> None:
        # A process that already exited on its own did not time out
        if self._process.poll() is None:
            self._expired = True
            self._process.kill()

    def close(self) -> None:
        """Release the process, killing it if it is still producing output.

        Raises:
            VCSTimeoutError: If the process was killed for exceeding the timeout
        """
        if self._closed:
            return
        self._closed = True

        if self._timer is not None:
            self._timer.cancel()
        if not self._exhausted and self._process.poll() is None:
            self._process.kill()
        if self._process.stdout is not None:
            self._process.stdout.close()
        self.returncode = self._process.wait()

        command_line = shlex.join(self.command)
        if self._expired:
            logger.warning(f"Timed out after {self.timeout}s: {command_line}")
            raise VCSTimeoutError(f"Command timed out after {self.timeout}s: {command_line}")
        if self.returncode != 0:
            logger.debug(f"Exited with status {self.returncode}: {command_line}")

    def __enter__(self) -> "LineStream":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


def popen(
    program: str | Path,
    *arguments: Argument,
    cwd: str | Path | None = None,
    timeout: float | None = None,
    env: Environment | None = None,
    on_line: Callable[[str], None] | None = None,
) -> LineStream:
    """Start a program and stream its standard output.

    Without ``on_line`` the caller pulls lines from the returned stream and
    must exhaust or close it. With ``on_line`` every line is pushed to the
    callback as it is produced and the returned stream is already closed.

    Args:
        program: The name or path of the program
        *arguments: Arguments for the program
        cwd: Working directory for the program
        timeout: Seconds before the program is killed
        env: Environment overrides for the program
        on_line: Optional callback receiving each line

    Returns:
        The line stream of the program

    Raises:
        VCSOperationError: If the program could not be started
    """
    command = build_command(program, arguments)
    logger.debug(f"Streaming: {shlex.join(command)} (cwd={cwd or Path.cwd()})")

    stream = LineStream(command, cwd=cwd, timeout=timeout, env=env)
    if on_line is not None:
        with stream:
            for line in stream:
                on_line(line)
    return stream
