"""Command-line interface for polyscm."""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from polyscm import __version__
from polyscm.config import ConfigurationError, ScmConfig
from polyscm.vcs import Repository, VCSError, VCSFactory, VCSType

app = typer.Typer(
    name="polyscm",
    help="One interface over Git, Mercurial and SubVersion repositories",
    add_completion=False,
)
console = Console()

# Help text constants
VERBOSE_OUTPUT_HELP = "Verbose output"
ENV_FILE_HELP = "Path to custom environment file (default: .env.polyscm or .env)"
REPO_HELP = "Repository directory"

STATUS_STYLES = {
    "modified": "yellow",
    "staged": "green",
    "added": "green",
    "deleted": "red",
    "removed": "red",
    "missing": "red",
    "untracked": "magenta",
    "unmerged": "bold red",
    "conflicted": "bold red",
}


def setup_logging(verbose: bool) -> None:
    """Setup logging configuration.

    Args:
        verbose: If True, enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def open_repository(repo: str, env_file: str | None) -> Repository:
    """Load the configuration and open the repository at ``repo``."""
    config = ScmConfig(env_file=env_file)
    return VCSFactory.detect(repo, config)


def fail(error: Exception, verbose: bool = False) -> NoReturn:
    """Report an error and exit with status 1."""
    if isinstance(error, ConfigurationError):
        console.print(f"[red]Configuration error: {error}[/red]")
    else:
        console.print(f"[red]Error: {error}[/red]")
        if verbose:
            console.print_exception()
    sys.exit(1)


@app.command()
def detect(
    path: str = typer.Argument(".", help="Directory to inspect"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Show which VCS controls a directory."""
    setup_logging(verbose)

    try:
        vcs_type = VCSFactory.detect_vcs(path)
    except VCSError as e:
        fail(e, verbose)

    console.print(f"[blue]{vcs_type.display_name}[/blue] ({vcs_type.value}) at {Path(path).resolve()}")


@app.command()
def status(
    paths: list[str] | None = typer.Argument(None, help="Restrict to these paths"),
    repo: str = typer.Option(".", "--repo", "-C", help=REPO_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Show the status of changed files."""
    setup_logging(verbose)

    try:
        repository = open_repository(repo, env_file)
        statuses = repository.status(*(paths or []))
    except (ConfigurationError, VCSError) as e:
        fail(e, verbose)

    if not statuses:
        console.print("[green]Working copy is clean[/green]")
        return

    table = Table(title=f"Status of {repository.path}")
    table.add_column("Status")
    table.add_column("Path")
    for path, file_status in sorted(statuses.items()):
        style = STATUS_STYLES.get(file_status.value, "")
        table.add_row(f"[{style}]{file_status.value}[/{style}]" if style else file_status.value, path)
    console.print(table)


@app.command()
def branches(
    repo: str = typer.Option(".", "--repo", "-C", help=REPO_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """List branches, marking the current one."""
    setup_logging(verbose)

    try:
        repository = open_repository(repo, env_file)
        names = repository.branches()
        current = repository.current_branch()
    except (ConfigurationError, VCSError) as e:
        fail(e, verbose)

    for name in names:
        if name == current:
            console.print(f"* [bold green]{name}[/bold green]")
        else:
            console.print(f"  {name}")


@app.command()
def tags(
    repo: str = typer.Option(".", "--repo", "-C", help=REPO_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """List tags."""
    setup_logging(verbose)

    try:
        repository = open_repository(repo, env_file)
        names = repository.tags()
    except (ConfigurationError, VCSError) as e:
        fail(e, verbose)

    for name in names:
        console.print(name)


@app.command()
def log(
    paths: list[str] | None = typer.Argument(None, help="Only commits touching these paths"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Maximum number of commits to show"),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Branch to show"),
    commit: str | None = typer.Option(None, "--commit", "-c", help="Commit or revision range to show"),
    repo: str = typer.Option(".", "--repo", "-C", help=REPO_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Show the commit history."""
    setup_logging(verbose)

    table = Table()
    table.add_column("Commit", style="cyan")
    table.add_column("Date")
    table.add_column("Author")
    table.add_column("Summary")

    try:
        repository = open_repository(repo, env_file)
        for entry in repository.commits(commit=commit, branch=branch, limit=limit, paths=paths):
            table.add_row(str(entry), entry.date.isoformat(sep=" "), entry.author, entry.summary)
    except (ConfigurationError, VCSError) as e:
        fail(e, verbose)

    console.print(table)


@app.command()
def files(
    pattern: str | None = typer.Option(None, "--pattern", "-p", help="Only files matching this glob"),
    repo: str = typer.Option(".", "--repo", "-C", help=REPO_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """List tracked files."""
    setup_logging(verbose)

    try:
        repository = open_repository(repo, env_file)
        for name in repository.files(pattern):
            console.print(name, highlight=False)
    except (ConfigurationError, VCSError) as e:
        fail(e, verbose)


@app.command()
def create(
    path: str = typer.Argument(..., help="Path of the new repository"),
    vcs: VCSType = typer.Option(VCSType.GIT, "--vcs", help="VCS to create the repository with"),
    bare: bool = typer.Option(False, "--bare", help="Create a repository without a working copy"),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Create a new repository."""
    setup_logging(verbose)

    try:
        config = ScmConfig(env_file=env_file)
        result = VCSFactory.create(path, vcs, bare=bare, config=config)
    except (ConfigurationError, VCSError) as e:
        fail(e, verbose)

    console.print(f"[green]Created {vcs.display_name} repository at {result}[/green]")


@app.command()
def clone(
    uri: str = typer.Argument(..., help="URI of the repository to clone"),
    dest: str | None = typer.Argument(None, help="Destination directory"),
    bare: bool = typer.Option(False, "--bare", help="Clone without a working copy (Git only)"),
    depth: int | None = typer.Option(None, "--depth", help="Truncate history to this many commits (Git only)"),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Branch to clone"),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Clone a remote repository."""
    setup_logging(verbose)

    options: dict[str, object] = {}
    if bare:
        options["bare"] = True
    if depth is not None:
        options["depth"] = depth
    if branch:
        options["branch"] = branch

    try:
        config = ScmConfig(env_file=env_file)
        repository = VCSFactory.clone(uri, dest, config, **options)
    except (ConfigurationError, VCSError) as e:
        fail(e, verbose)

    console.print(f"[green]Cloned {repository.vcs_type.display_name} repository into {repository.path}[/green]")


@app.command()
def config(
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
) -> None:
    """Show current configuration."""
    try:
        cfg = ScmConfig(env_file=env_file)
    except ConfigurationError as e:
        fail(e)

    console.print("[bold]Current Configuration:[/bold]\n")
    console.print(f"  Git: {cfg.git_executable}")
    console.print(f"  Mercurial: {cfg.hg_executable}")
    console.print(f"  SubVersion: {cfg.svn_executable}")
    console.print(f"  SubVersion admin: {cfg.svnadmin_executable}")
    console.print(f"  Command timeout: {cfg.command_timeout or 'none'}")
    console.print(f"  Strict parsing: {cfg.strict_parsing}")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"polyscm version {__version__}")


if __name__ == "__main__":
    app()
