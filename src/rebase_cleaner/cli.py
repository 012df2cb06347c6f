"""Command line interface for rebase-cleaner."""

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from rebase_cleaner import __version__
from rebase_cleaner.git import GitError, GitRepo
from rebase_cleaner.scanner import DEFAULT_REFERENCE_BRANCH, RedundancyScanner, ReferenceBranchError

app = typer.Typer(help="Delete local branches already contained in a remote branch")
console = Console()


class DeleteChoice(Enum):
    """Answer to the deletion question."""

    YES = "Y"
    NO = "N"
    ASK = "A"


def setup_logging(verbose: bool) -> None:
    """Route logging through rich, at debug level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    if not verbose:
        # GitPython logs every command it runs at debug level
        logging.getLogger("git").setLevel(logging.WARNING)


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        console.print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=1) from err


def select_branches(branches: list[str], choice: DeleteChoice, confirm: Callable[[str], bool]) -> list[str]:
    """Pick the branches to delete according to the user's answer.

    With ``DeleteChoice.ASK`` every branch is confirmed once, in order; a
    declined branch is not asked about again.
    """
    if choice is DeleteChoice.NO:
        return []
    if choice is DeleteChoice.YES:
        return list(branches)
    return [branch for branch in branches if confirm(branch)]


def ask_choice() -> DeleteChoice:
    """Ask whether to delete all, none or each of the branches."""
    console.print("Do you want to delete these branches?")
    console.print("  [bold]Y[/bold] Yes, delete these branches")
    console.print("  [bold]N[/bold] No, don't delete any branch")
    console.print("  [bold]A[/bold] Ask for each branch")
    answer = typer.prompt(
        "Choice",
        type=click.Choice([choice.value for choice in DeleteChoice], case_sensitive=False),
    )
    return DeleteChoice(answer.upper())


def confirm_branch(branch: str) -> bool:
    """Ask about a single branch."""
    return typer.confirm(f"Delete branch {branch}?", default=False)


def scan_branches(scanner: RedundancyScanner, branches: list[str]) -> list[str]:
    """Run the scan behind a progress bar."""
    with Progress(
        TextColumn("[cyan]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("", total=len(branches))
        return scanner.scan(
            branches,
            on_start=lambda branch: progress.update(task, description=branch),
            on_progress=lambda branch, completed, total: progress.update(task, completed=completed),
        )


def version_callback(value: bool) -> None:
    """Print the version and exit."""
    if value:
        console.print(f"rebase-cleaner {__version__}")
        raise typer.Exit()


@app.command()
def clean(
    path: Annotated[Path, typer.Argument(help="Path to git repository")] = Path("."),
    reference_branch: Annotated[
        str, typer.Argument(help="Remote branch to check against")
    ] = DEFAULT_REFERENCE_BRANCH,
    skip_branch: Annotated[
        Optional[list[str]],
        typer.Option("--skip-branch", "-s", help="Skip a local branch, for example your main branch"),
    ] = None,
    no_interactive: bool = typer.Option(False, "--no-interactive", "-y", help="Delete without asking"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Only list redundant branches"),
    fetch: bool = typer.Option(True, "--fetch/--no-fetch", help="Fetch all remotes first"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """Find local branches whose rebase onto REFERENCE_BRANCH is REFERENCE_BRANCH itself, and delete them."""
    setup_logging(verbose)
    repo = get_repo(path)
    scanner = RedundancyScanner(repo, reference_branch)

    try:
        if fetch:
            console.print("Fetching branches... ", end="")
            repo.fetch_all()
            console.print("[green]✔[/green]")

        scanner.resolve_reference()
        branches = scanner.candidates(skip_branch or [])

        console.print()
        console.print("Analyzing branches...")
        up_to_date = scan_branches(scanner, branches)
    except (ReferenceBranchError, GitError) as err:
        console.print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=1) from err

    console.print()
    if not up_to_date:
        console.print(Panel(f"[green]No branch is up-to-date with {reference_branch}.[/green]", expand=False))
        return

    console.print(f"The following local branches are up-to-date with [green]{reference_branch}[/green]:")
    for branch in up_to_date:
        console.print(f"  [blue]{branch}[/blue]")
    console.print()

    if dry_run:
        console.print("[yellow]Dry run, no branch has been deleted.[/yellow]")
        return

    choice = DeleteChoice.YES if no_interactive else ask_choice()
    to_delete = select_branches(up_to_date, choice, confirm_branch)
    if not to_delete:
        console.print(Panel("[green]No branch has been deleted.[/green]", expand=False))
        return

    deleted: list[str] = []
    try:
        for branch in to_delete:
            console.print(f"Deleting branch [cyan]{branch}[/cyan]... ", end="")
            repo.delete_branch(branch, force=True)
            console.print("[green]✔[/green]")
            deleted.append(branch)
    except GitError as err:
        console.print(f"\n[red]Error:[/red] {err}")
        if deleted:
            report_deleted(deleted)
        raise typer.Exit(code=1) from err

    report_deleted(deleted)


def report_deleted(deleted: list[str]) -> None:
    """Show how many and which branches were deleted."""
    result_table = Table(
        show_header=True,
        header_style="bold",
        show_edge=True,
    )
    result_table.add_column("Branch", style="cyan")
    for branch in deleted:
        result_table.add_row(branch)

    console.print()
    console.print(Panel(f"[green]Successfully deleted {len(deleted)} branch(es) 🧹[/green]", expand=False))
    console.print(result_table)


if __name__ == "__main__":
    app()
