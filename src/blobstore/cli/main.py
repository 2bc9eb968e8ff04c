"""Main CLI entry point for BlobStore."""

import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from blobstore.constants import (
    DATA_DIR_ENV,
    EXIT_DATA_ERROR,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
)
from blobstore.core import (
    BlobStore,
    BlobStoreError,
    BlobStoreInitError,
    BlobStoreIOError,
)
from blobstore.logging_setup import setup_logging

console = Console()
app = typer.Typer(
    name="blobstore",
    help="Inspect and manage a local versioned blob store",
    add_completion=False,
)

DATA_DIR_OPTION = typer.Option(
    Path("."),
    "--data-dir",
    "-d",
    envvar=DATA_DIR_ENV,
    help="Data directory containing the blobstore/ folder",
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    setup_logging(verbose)


def _open_store(data_dir: Path, must_exist: bool = False) -> BlobStore:
    """Open the store, exiting with a readable message if it can't start.

    With must_exist, a data directory without a blob store is an error
    instead of being initialized.
    """
    store = BlobStore(data_dir)
    if must_exist and not store.base_dir.is_dir():
        console.print(
            f"[bold red]Error:[/bold red] No blob store found under {data_dir}",
            style="red",
        )
        console.print("  Run 'blobstore init' first or check --data-dir", style="dim")
        raise typer.Exit(EXIT_USER_ERROR)

    try:
        store.initialize()
    except BlobStoreInitError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        console.print(
            f"  Could not open blob store under {data_dir}",
            style="dim",
        )
        raise typer.Exit(EXIT_DATA_ERROR)
    return store


def _fail(error: BlobStoreError) -> NoReturn:
    """Print an engine error and exit with the matching code."""
    console.print(f"[bold red]Error:[/bold red] {error}", style="red")
    if isinstance(error, BlobStoreIOError):
        raise typer.Exit(EXIT_SYSTEM_ERROR)
    raise typer.Exit(EXIT_USER_ERROR)


@app.command()
def version() -> None:
    """Show BlobStore version."""
    from blobstore import __version__
    typer.echo(f"BlobStore version {__version__}")


@app.command()
def init(
    data_dir: Path = DATA_DIR_OPTION,
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Create a blob store in the data directory, or load the existing one."""
    store = _open_store(data_dir)

    if not quiet:
        namespaces = store.namespaces()
        message = f"""[bold green]✓[/bold green] Blob store ready

[dim]Storage location:[/dim] {store.base_dir}
[dim]Metadata file:[/dim] {store.metadata_file}
[dim]Namespaces:[/dim] {len(namespaces)}
"""
        console.print(Panel(message, border_style="green", title="BlobStore"))


@app.command()
def put(
    namespace: str = typer.Argument(..., help="Namespace name"),
    object_id: str = typer.Argument(..., metavar="ID", help="Object id"),
    version_number: int = typer.Argument(..., metavar="VERSION", help="Version number"),
    source: Path = typer.Argument(..., help="File whose bytes are stored"),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Store a file as a new version of an object."""
    if not source.is_file():
        console.print(f"[bold red]Error:[/bold red] File not found: {source}", style="red")
        raise typer.Exit(EXIT_USER_ERROR)

    store = _open_store(data_dir)
    content = source.read_bytes()

    try:
        store.store(namespace, object_id, version_number, content)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(EXIT_USER_ERROR)
    except BlobStoreError as e:
        _fail(e)

    console.print(
        f"[green]+[/green] {namespace}/{object_id} version {version_number}  "
        f"[dim]({len(content)} B)[/dim]"
    )


@app.command()
def get(
    namespace: str = typer.Argument(..., help="Namespace name"),
    object_id: str = typer.Argument(..., metavar="ID", help="Object id"),
    version_number: Optional[int] = typer.Argument(
        None,
        metavar="[VERSION]",
        help="Version number (default: latest)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write content to this file instead of stdout",
    ),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Retrieve the content of a version."""
    store = _open_store(data_dir, must_exist=True)

    try:
        if version_number is None:
            version_number = store.latest_version(namespace, object_id)
        content = store.retrieve(namespace, object_id, version_number)
    except BlobStoreError as e:
        _fail(e)

    if output is not None:
        output.write_bytes(content)
        console.print(f"[green]>[/green] Wrote {len(content)} B to {output}")
    else:
        sys.stdout.buffer.write(content)
        sys.stdout.flush()


@app.command()
def rm(
    namespace: str = typer.Argument(..., help="Namespace name"),
    object_id: str = typer.Argument(..., metavar="ID", help="Object id"),
    version_number: int = typer.Argument(..., metavar="VERSION", help="Version number"),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Delete one version of an object."""
    store = _open_store(data_dir)

    try:
        store.delete(namespace, object_id, version_number)
    except BlobStoreError as e:
        _fail(e)

    console.print(f"[red]-[/red] {namespace}/{object_id} version {version_number}")


@app.command()
def versions(
    namespace: str = typer.Argument(..., help="Namespace name"),
    object_id: str = typer.Argument(..., metavar="ID", help="Object id"),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """List the stored versions of an object."""
    store = _open_store(data_dir, must_exist=True)

    if not store.exists(namespace, object_id):
        console.print(
            f"[bold red]Error:[/bold red] Object not found: {namespace}/{object_id}",
            style="red",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    all_versions = sorted(store.all_versions(namespace, object_id))
    if not all_versions:
        console.print("[yellow]Object has no versions[/yellow]")
        return

    latest = all_versions[-1]
    for number in all_versions:
        marker = "  [cyan](latest)[/cyan]" if number == latest else ""
        console.print(f"{number}{marker}")


@app.command("ls")
def list_entries(
    namespace: Optional[str] = typer.Argument(
        None,
        help="List objects in this namespace (default: list namespaces)",
    ),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """List namespaces, or the objects inside a namespace."""
    store = _open_store(data_dir, must_exist=True)

    if namespace is None:
        names = store.namespaces()
        if not names:
            console.print("[yellow]Blob store is empty[/yellow]")
            return
        table = Table(title="Namespaces")
        table.add_column("Namespace", style="cyan")
        table.add_column("Objects", justify="right")
        for name in names:
            table.add_row(name, str(len(store.objects(name))))
        console.print(table)
        return

    object_ids = store.objects(namespace)
    if not object_ids:
        console.print(f"[yellow]No objects in namespace {namespace}[/yellow]")
        return

    table = Table(title=f"Objects in {namespace}")
    table.add_column("Id", style="cyan")
    table.add_column("Versions", justify="right")
    table.add_column("Latest", justify="right")
    for object_id in object_ids:
        object_versions = store.all_versions(namespace, object_id)
        latest = str(max(object_versions)) if object_versions else "-"
        table.add_row(object_id, str(len(object_versions)), latest)
    console.print(table)


@app.command()
def check(
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Compare metadata with content files on disk (read-only)."""
    store = _open_store(data_dir, must_exist=True)
    report = store.check_consistency()

    if report.is_consistent:
        console.print("[bold green]✓[/bold green] Metadata and content files are consistent")
        return

    if report.orphaned:
        console.print("[bold yellow]Orphaned content files:[/bold yellow]")
        for name in report.orphaned:
            console.print(f"  [yellow]?[/yellow] {name}")

    if report.missing:
        console.print("\n[bold red]Missing content files:[/bold red]")
        for ns_name, object_id, number, content_ref in report.missing:
            console.print(
                f"  [red]x[/red] {ns_name}/{object_id} version {number}  [dim]({content_ref})[/dim]"
            )

    raise typer.Exit(EXIT_USER_ERROR)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
