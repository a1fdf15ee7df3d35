"""
xtags CLI using Typer.

Get, set and delete tags on files and directories, and forward list, query
and rename requests to the tag query daemon.
"""

import json
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from . import __version__
from .applier import Operation, PathResult
from .config import XtagsSettings
from .log import setup_logging
from .query import QueryClient

app = typer.Typer(
    name="xtags",
    help="xtags: manage file tags stored in extended attributes",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"xtags version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """xtags: manage file tags stored in extended attributes"""
    pass


def load_config(config_file: Optional[Path]) -> XtagsSettings:
    """Load settings and configure logging from them."""
    if config_file:
        config = XtagsSettings.load_from_yaml(config_file)
    else:
        config = XtagsSettings.load()
    setup_logging(config.log_level, config.log_file)
    return config


def report_errors(results: List[PathResult]) -> int:
    """Print failed paths to stderr and return how many failed."""
    failed = [result for result in results if not result.ok]
    for result in failed:
        err_console.print(
            f"[bold red]Error[/] for file \"{escape(str(result.path))}\" "
            f"[dim]({result.error.kind})[/]: {escape(str(result.error))}",
            soft_wrap=True,
        )
    return len(failed)


def run_operation(
    operation: Operation,
    paths: List[Path],
    tags: List[str],
    recursive: bool,
    config_file: Optional[Path],
) -> List[PathResult]:
    """Shared body of get/set/del; exits 1 on boundary errors."""
    try:
        config = load_config(config_file)
        applier = config.build_applier()
        return applier.apply(paths, operation, tags, recursive=recursive)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)


@app.command()
def get(
    paths: List[Path] = typer.Argument(..., help="Files or directories to read"),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Also show tags for every entry below directories",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Show the tags of files and folders.
    """
    results = run_operation(Operation.GET, paths, [], recursive, config_file)

    for result in results:
        if not result.ok:
            continue
        path = escape(str(result.path))
        if result.tags:
            tags = ", ".join(escape(tag) for tag in sorted(result.tags))
            console.print(f"[cyan]{tags}[/]  \"{path}\"", soft_wrap=True)
        else:
            console.print(f"[dim]File \"{path}\" has no tags[/]", soft_wrap=True)

    if report_errors(results):
        sys.exit(1)


@app.command("set")
def set_tags(
    paths: List[Path] = typer.Argument(..., help="Files or directories to tag"),
    tags: List[str] = typer.Option(..., "--tag", "-t", help="Tag to add (repeatable)"),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Also tag every entry below directories",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Add tags, keeping the tags already present.
    """
    results = run_operation(Operation.SET, paths, tags, recursive, config_file)

    changed = sum(1 for result in results if result.changed)
    console.print(
        f"[bold green]✓ Tag(s) {escape(', '.join(sorted(set(tags))))} set[/] "
        f"on {len(results)} path(s), {changed} changed",
        soft_wrap=True,
    )

    if report_errors(results):
        sys.exit(1)


@app.command("del")
def delete_tags(
    paths: List[Path] = typer.Argument(..., help="Files or directories to untag"),
    tags: List[str] = typer.Option(..., "--tag", "-t", help="Tag to remove (repeatable)"),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Also untag every entry below directories",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Remove tags, keeping the others. The attribute is removed once no tags remain.
    """
    results = run_operation(Operation.DELETE, paths, tags, recursive, config_file)

    changed = sum(1 for result in results if result.changed)
    console.print(
        f"[bold green]✓ Tag(s) {escape(', '.join(sorted(set(tags))))} deleted[/] "
        f"on {len(results)} path(s), {changed} changed",
        soft_wrap=True,
    )

    if report_errors(results):
        sys.exit(1)


@app.command()
def dump(
    paths: List[Path] = typer.Argument(..., help="Roots to export"),
    recursive: bool = typer.Option(
        True,
        "--recursive/--no-recursive",
        "-r/-R",
        help="Walk directory subtrees",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Export tagged paths as JSON lines for indexers.

    Each line is {"path": ..., "tags": [...]}; untagged paths are omitted.
    Exits 1 if any path could not be read, so a partial export is visible.
    """
    failed = []
    try:
        config = load_config(config_file)
        applier = config.build_applier()
        for result in applier.iter_apply(paths, Operation.GET, recursive=recursive):
            if not result.ok:
                failed.append(result)
            elif result.tags:
                typer.echo(
                    json.dumps(
                        {"path": str(result.path), "tags": sorted(result.tags)},
                        ensure_ascii=False,
                    )
                )
    except Exception as e:
        err_console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    if report_errors(failed):
        sys.exit(1)


def query_client(config_file: Optional[Path]) -> QueryClient:
    config = load_config(config_file)
    return QueryClient(config.query.socket_path, config.query.timeout)


@app.command("list")
def list_tags(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Show every tag known to the query daemon.
    """
    try:
        typer.echo(query_client(config_file).list_tags(), nl=False)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)


@app.command()
def query(
    terms: List[str] = typer.Argument(..., help="Query, e.g. bob AND fred OR max"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Show files matching a tag query, answered by the query daemon.
    """
    try:
        typer.echo(query_client(config_file).query(terms), nl=False)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)


@app.command()
def rename(
    old: str = typer.Argument(..., help="Current tag name"),
    new: str = typer.Argument(..., help="New tag name"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Rename a tag everywhere, through the query daemon.
    """
    try:
        typer.echo(query_client(config_file).rename(old, new), nl=False)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)


@app.command()
def init_config(
    output: Path = typer.Option(
        Path.cwd() / "xtags.yaml",
        "--output",
        "-o",
        help="Output config file path",
    ),
    user: bool = typer.Option(
        False,
        "--user",
        help="Create user config at ~/.config/xtags/config.yaml",
    ),
):
    """
    Initialize a configuration file with defaults.
    """
    if user:
        output = Path.home() / ".config/xtags/config.yaml"

    if output.exists():
        overwrite = typer.confirm(f"Config file exists at {output}. Overwrite?")
        if not overwrite:
            console.print("[yellow]Cancelled[/]")
            raise typer.Exit()

    try:
        XtagsSettings().save_to_yaml(output)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    console.print(f"[bold green]✓ Config file created:[/] {escape(str(output))}")


def main_cli():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main_cli()
