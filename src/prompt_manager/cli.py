"""
CLI tool for prompt-manager.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from prompt_manager.config import DATA_DIR_ENV, FORMAT_ENV, load_settings
from prompt_manager.exceptions import ConfigurationError, PromptManagerError
from prompt_manager.manager import configure_manager, get_manager
from prompt_manager.models import PromptCreateInput, PromptUpdateInput, PromptVersion


app = typer.Typer(
    name="prompt-manager",
    help="A tool for managing versioned prompts",
    add_completion=False,
)
console = Console()

VERSION_REF_HELP = "Version can be: v1, v2, v3... or version ID"


def setup_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def read_content(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        fail(f"Could not read content file {path}: {e}")


def format_time(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def describe_version(version: PromptVersion) -> str:
    line = f"v{version.version} - {format_time(version.created_at)}"
    if version.change_description:
        line += f" ({version.change_description})"
    return line


@app.callback()
def main(
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        envvar=DATA_DIR_ENV,
        help="Directory holding the prompt store (defaults to ~/.prompt-manager)",
    ),
    record_format: Optional[str] = typer.Option(
        None,
        "--format",
        envvar=FORMAT_ENV,
        help="Record file format: json or yaml",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """
    Prompt Manager - a tool for managing versioned prompts.
    """
    setup_logging(log_level)
    try:
        settings = load_settings(data_dir, record_format)
    except ConfigurationError as e:
        fail(str(e))
    configure_manager(settings)


@app.command()
def create(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Prompt name"),
    file: Optional[Path] = typer.Option(
        None,
        "--file", "-f",
        help="File containing prompt content",
    ),
    message: Optional[str] = typer.Option(
        None,
        "--message", "-m",
        help="Change description for the first version",
    ),
    description: Optional[str] = typer.Option(
        None,
        "--description", "-d",
        help="Prompt description",
    ),
    tags: Optional[list[str]] = typer.Option(
        None,
        "--tag", "-t",
        help="Tag to attach (repeatable)",
    ),
    author: Optional[str] = typer.Option(
        None,
        "--author", "-a",
        help="Recorded as the creator of the version",
    ),
) -> None:
    """
    Create a new prompt.
    """
    if not name:
        fail("Prompt name is required")
    if not file:
        fail("Content file is required")

    content = read_content(file)

    try:
        prompt = get_manager().create_prompt(PromptCreateInput(
            name=name,
            content=content,
            description=description,
            tags=tags or None,
            change_description=message,
            created_by=author,
        ))
    except PromptManagerError as e:
        fail(str(e))

    console.print("[green]✓[/green] Prompt created successfully")
    console.print(f"ID: {prompt.id}", highlight=False)
    console.print(f"Name: {escape(prompt.name)}", highlight=False)
    console.print(f"Version: {prompt.current_version.version}", highlight=False)


@app.command()
def update(
    prompt_id: Optional[str] = typer.Argument(None, help="Prompt ID to update"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New prompt name"),
    file: Optional[Path] = typer.Option(
        None,
        "--file", "-f",
        help="File containing the new prompt content",
    ),
    message: Optional[str] = typer.Option(
        None,
        "--message", "-m",
        help="Change description for the new version",
    ),
    description: Optional[str] = typer.Option(
        None,
        "--description", "-d",
        help="New prompt description",
    ),
    tags: Optional[list[str]] = typer.Option(
        None,
        "--tag", "-t",
        help="Replace the tags (repeatable)",
    ),
    author: Optional[str] = typer.Option(
        None,
        "--author", "-a",
        help="Recorded as the creator of the new version",
    ),
) -> None:
    """
    Update an existing prompt.

    A new version is only recorded when the file content differs from the
    current version.
    """
    if not prompt_id:
        fail("Prompt ID is required")

    data = PromptUpdateInput(
        name=name,
        description=description,
        tags=tags or None,
        change_description=message,
        created_by=author,
    )
    if file:
        data.content = read_content(file)

    try:
        prompt = get_manager().update_prompt(prompt_id, data)
    except PromptManagerError as e:
        fail(str(e))

    if prompt is None:
        fail("Prompt not found")

    console.print("[green]✓[/green] Prompt updated successfully")
    console.print(f"Version: {prompt.current_version.version}", highlight=False)


@app.command()
def get(
    prompt_id: Optional[str] = typer.Argument(None, help="Prompt ID"),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Also show the version history",
    ),
) -> None:
    """
    Get a prompt by ID.
    """
    if not prompt_id:
        fail("Prompt ID is required")

    prompt = get_manager().get_prompt(prompt_id, include_history=verbose)
    if prompt is None:
        fail("Prompt not found")

    console.print(f"[bold]Name:[/bold] {escape(prompt.name)}", highlight=False)
    console.print(f"[bold]ID:[/bold] {prompt.id}", highlight=False)
    if prompt.description:
        console.print(f"[bold]Description:[/bold] {escape(prompt.description)}", highlight=False)
    if prompt.tags:
        console.print(f"[bold]Tags:[/bold] {escape(', '.join(prompt.tags))}", highlight=False)
    console.print(f"[bold]Current Version:[/bold] {prompt.current_version.version}", highlight=False)
    console.print(f"[bold]Created:[/bold] {format_time(prompt.created_at)}", highlight=False)
    console.print(f"[bold]Updated:[/bold] {format_time(prompt.updated_at)}", highlight=False)
    console.print("\n[bold]Content:[/bold]")
    console.print(prompt.current_version.content, markup=False, highlight=False)

    if verbose and prompt.versions:
        console.print("\n[bold]Version History:[/bold]")
        for version in prompt.versions:
            console.print(f"  {describe_version(version)}", markup=False, highlight=False)


@app.command("list")
def list_prompts() -> None:
    """
    List all prompts.
    """
    prompts = get_manager().list_prompts()
    if not prompts:
        console.print("No prompts found")
        return

    table = Table(title="Prompts")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Tags", style="dim")
    table.add_column("Updated", style="yellow")

    for prompt in prompts:
        table.add_row(
            prompt.id,
            escape(prompt.name),
            escape(", ".join(prompt.tags)),
            format_time(prompt.updated_at),
        )

    console.print(table)


@app.command()
def versions(
    prompt_id: Optional[str] = typer.Argument(None, help="Prompt ID"),
) -> None:
    """
    List all versions of a prompt.
    """
    if not prompt_id:
        fail("Prompt ID is required")

    history = get_manager().get_prompt_versions(prompt_id)
    if not history:
        console.print("No versions found")
        return

    table = Table(title="Versions")
    table.add_column("Version", style="green")
    table.add_column("Created", style="yellow")
    table.add_column("Description")
    table.add_column("ID", style="cyan", no_wrap=True)

    for version in history:
        table.add_row(
            version.label,
            format_time(version.created_at),
            escape(version.change_description or ""),
            version.id,
        )

    console.print(table)


@app.command()
def show(
    prompt_id: Optional[str] = typer.Argument(None, help="Prompt ID"),
    version_ref: Optional[str] = typer.Argument(None, help=VERSION_REF_HELP),
) -> None:
    """
    Print the content of one version of a prompt.
    """
    if not prompt_id or not version_ref:
        console.print("Usage: prompt-manager show <prompt-id> <version>")
        fail("Prompt ID and version reference are required")

    version = get_manager().get_version(prompt_id, version_ref)
    if version is None:
        fail("Version not found. Check that prompt and version exist.")

    console.print(f"[dim]{escape(describe_version(version))}[/dim]", highlight=False)
    console.print(version.content, markup=False, highlight=False)


@app.command()
def compare(
    prompt_id: Optional[str] = typer.Argument(None, help="Prompt ID"),
    from_ref: Optional[str] = typer.Argument(None, help=f"Version to compare from. {VERSION_REF_HELP}"),
    to_ref: Optional[str] = typer.Argument(None, help=f"Version to compare to. {VERSION_REF_HELP}"),
) -> None:
    """
    Compare two versions of a prompt, line by line.
    """
    if not prompt_id or not from_ref or not to_ref:
        console.print("Usage: prompt-manager compare <prompt-id> <from-version> <to-version>")
        console.print(VERSION_REF_HELP)
        fail("Prompt ID and two version references are required")

    result = get_manager().compare_versions(prompt_id, from_ref, to_ref)
    if result is None:
        fail("Could not compare versions. Check that prompt and versions exist.")

    console.print(
        f"[bold]Comparing[/bold] {result.from_version.label} → {result.to_version.label}",
        highlight=False,
    )

    changes = result.changes
    if changes.is_empty:
        console.print("[green]No differences[/green]")
        return

    if changes.added:
        console.print("\n[green]Added:[/green]")
        for line in changes.added:
            console.print(f"+ {line}", style="green", markup=False, highlight=False)

    if changes.removed:
        console.print("\n[red]Removed:[/red]")
        for line in changes.removed:
            console.print(f"- {line}", style="red", markup=False, highlight=False)

    if changes.modified:
        console.print("\n[yellow]Modified:[/yellow]")
        for line in changes.modified:
            console.print(f"~ {line}", style="yellow", markup=False, highlight=False)


@app.command()
def revert(
    prompt_id: Optional[str] = typer.Argument(None, help="Prompt ID"),
    version_ref: Optional[str] = typer.Argument(None, help=VERSION_REF_HELP),
) -> None:
    """
    Revert to a specific version.

    The old content is recorded again as a new version; history is kept.
    """
    if not prompt_id or not version_ref:
        console.print("Usage: prompt-manager revert <prompt-id> <version>")
        console.print(VERSION_REF_HELP)
        fail("Prompt ID and version reference are required")

    try:
        prompt = get_manager().revert_to_version(prompt_id, version_ref)
    except PromptManagerError as e:
        fail(str(e))

    if prompt is None:
        fail("Could not revert to version. Check that prompt and version exist.")

    console.print("[green]✓[/green] Reverted successfully")
    console.print(f"New version: {prompt.current_version.version}", highlight=False)


if __name__ == "__main__":
    app()
