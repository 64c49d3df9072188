"""Main CLI entry point for grit."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from grit.constants import (
    DEFAULT_BRANCH,
    EXIT_DATA_ERROR,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
)
from grit.core import GitObject, ObjectType, Repository
from grit.errors import (
    CorruptObjectError,
    GritError,
    InvalidHeaderError,
    MalformedObjectError,
)

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="grit",
    help="Content-addressable object store compatible with Git loose objects",
    add_completion=False,
)

# Errors caused by the stored data rather than by the user's request
_DATA_ERRORS = (CorruptObjectError, InvalidHeaderError, MalformedObjectError)


def _fail(error: Exception) -> typer.Exit:
    """Report ``error`` and build the matching exit."""
    console.print(
        f"[bold red]Error:[/bold red] {escape(str(error))}",
        style="red",
        highlight=False,
        soft_wrap=True,
    )
    if isinstance(error, _DATA_ERRORS):
        return typer.Exit(EXIT_DATA_ERROR)
    if isinstance(error, GritError):
        return typer.Exit(EXIT_USER_ERROR)
    return typer.Exit(EXIT_SYSTEM_ERROR)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Content-addressable object store compatible with Git loose objects."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def version() -> None:
    """Show grit version."""
    from grit import __version__
    typer.echo(f"grit version {__version__}")


@app.command()
def init(
    path: Path = typer.Argument(
        Path("."),
        help="Directory to initialize (created if missing)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize an empty repository."""
    try:
        repo = Repository.create(path)
    except (GritError, OSError) as e:
        raise _fail(e)

    if not quiet:
        success_message = f"""[bold green]✓[/bold green] Initialized empty repository

[dim]Repository root:[/dim] {repo.worktree}
[dim]Git directory:[/dim] {repo.gitdir}
[dim]Default branch:[/dim] {DEFAULT_BRANCH}

[bold]Next steps:[/bold]
  1. Store a file: [cyan]grit hash-object -w FILE[/cyan]
  2. Inspect it: [cyan]grit cat-file KEY[/cyan]
"""
        console.print(Panel(success_message, border_style="green", title="Repository Initialized"))


@app.command("hash-object")
def hash_object(
    file: Path = typer.Argument(..., help="File whose content to hash"),
    object_type: str = typer.Option(
        ObjectType.BLOB.value,
        "--type",
        "-t",
        help="Object type: blob, commit, tag or tree",
    ),
    write: bool = typer.Option(
        False,
        "--write",
        "-w",
        help="Store the object in the repository",
    ),
) -> None:
    """Compute the key of a file's content, optionally storing it."""
    try:
        data = file.read_bytes()
        obj = GitObject.create(object_type, data)

        if write:
            repo = Repository.find(Path.cwd())
            key = repo.write(obj)
        else:
            key = obj.hash()
    except (GritError, OSError) as e:
        raise _fail(e)

    typer.echo(key)


@app.command("cat-file")
def cat_file(
    key: str = typer.Argument(..., help="Object key (40 hex characters)"),
    show_type: bool = typer.Option(
        False,
        "--type",
        "-t",
        help="Show the object type instead of its content",
    ),
    show_size: bool = typer.Option(
        False,
        "--size",
        "-s",
        help="Show the payload size instead of the content",
    ),
    expected_type: Optional[str] = typer.Option(
        None,
        "--expect",
        "-e",
        help="Fail unless the object has this type",
    ),
) -> None:
    """Print an object stored in the repository."""
    try:
        if expected_type is not None:
            expected_type = ObjectType.from_label(expected_type.lower())
        repo = Repository.find(Path.cwd())
        obj = repo.read(key)
    except (GritError, OSError) as e:
        raise _fail(e)

    if expected_type is not None and obj.kind != expected_type:
        console.print(
            f"[bold red]Error:[/bold red] Object {key} is a {obj.kind}, not a {expected_type}",
            style="red",
            highlight=False,
            soft_wrap=True,
        )
        raise typer.Exit(EXIT_USER_ERROR)

    if show_type:
        typer.echo(obj.kind.value)
    elif show_size:
        typer.echo(str(obj.size))
    else:
        typer.echo(obj.serialize(), nl=False)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
