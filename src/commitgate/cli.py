"""commitgate CLI - validate commits against content rules."""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from commitgate import __version__
from commitgate.config import ConfigurationError, GateConfig, default_config_path, load_gate_config
from commitgate.hook import check_push, project_name_for, read_updates
from commitgate.rules.registry import RULES
from commitgate.store.git import GitRepositoryManager
from commitgate.store.types import StoreAccessError
from commitgate.validation.coordinator import ValidationAborted, ValidationOutcome, check_commit

EXIT_ACCEPTED = 0
EXIT_ABORTED = 1
EXIT_REJECTED = 2

cli = typer.Typer(
    name="commitgate",
    help="commitgate - reject pushes whose commits break content rules",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _version_option_callback(value: bool) -> None:
    if value:
        typer.echo(f"commitgate {__version__}")
        raise typer.Exit(0)


@cli.callback()
def _cli_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log rule and diff progress to stderr",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_option_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _open_repository(repo: Path, config: Path | None) -> tuple[GitRepositoryManager, Path, GateConfig]:
    repositories = GitRepositoryManager.for_path(repo)
    git_dir = repositories.fixed_git_dir
    assert git_dir is not None
    gate_config = load_gate_config(config or default_config_path(git_dir))
    return repositories, git_dir, gate_config


def _fail(exc: Exception) -> typer.Exit:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    return typer.Exit(EXIT_ABORTED)


def _report(outcomes: list[ValidationOutcome], json_output: bool) -> None:
    rejected = any(outcome.rejected for outcome in outcomes)
    if json_output:
        payload = {
            "rejected": rejected,
            "outcomes": [outcome.to_dict() for outcome in outcomes],
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        for outcome in outcomes:
            for message in outcome.messages:
                style = "red" if message.is_error else "yellow"
                console.print(f"[{style}]{escape(str(message))}[/{style}]", soft_wrap=True)
        if rejected:
            console.print("[red]✗ push rejected[/red]")
        else:
            console.print(f"[green]✓ {len(outcomes)} commit(s) accepted[/green]")
    raise typer.Exit(EXIT_REJECTED if rejected else EXIT_ACCEPTED)


@cli.command()
def check(
    commits: list[str] = typer.Argument(..., metavar="COMMIT...", help="Commits to validate"),
    repo: Path = typer.Option(Path("."), "--repo", help="Repository path (bare or worktree)"),
    project: str | None = typer.Option(
        None,
        "--project",
        help="Project name for configuration lookup (defaults to the repository name)",
    ),
    ref: str = typer.Option("refs/heads/main", "--ref", help="Ref the commits are pushed to"),
    user: str | None = typer.Option(None, "--user", envvar="COMMITGATE_USER", help="Pushing user"),
    config: Path | None = typer.Option(None, "--config", help="Configuration file"),
    json_output: bool = typer.Option(False, "--json", help="Print the outcome as JSON"),
) -> None:
    """Validate individual commits."""
    try:
        repositories, git_dir, gate_config = _open_repository(repo, config)
        project_name = project or project_name_for(git_dir)
        outcomes = [
            check_commit(
                repositories,
                gate_config,
                project=project_name,
                commit_id=commit_id,
                ref=ref,
                user=user,
            )
            for commit_id in commits
        ]
    except (ValidationAborted, StoreAccessError, ConfigurationError) as exc:
        raise _fail(exc) from exc
    _report(outcomes, json_output)


@cli.command("pre-receive")
def pre_receive(
    repo: Path = typer.Option(Path("."), "--repo", help="Repository receiving the push"),
    project: str | None = typer.Option(None, "--project", help="Project name for configuration lookup"),
    user: str | None = typer.Option(None, "--user", envvar="COMMITGATE_USER", help="Pushing user"),
    config: Path | None = typer.Option(None, "--config", help="Configuration file"),
    json_output: bool = typer.Option(False, "--json", help="Print the outcome as JSON"),
) -> None:
    """Validate a push from pre-receive hook input on stdin."""
    try:
        repositories, git_dir, gate_config = _open_repository(repo, config)
        updates = list(read_updates(typer.get_text_stream("stdin")))
        outcomes = check_push(
            repositories,
            gate_config,
            git_dir=git_dir,
            project=project or project_name_for(git_dir),
            updates=updates,
            user=user,
        )
    except (ValidationAborted, StoreAccessError, ConfigurationError, ValueError) as exc:
        raise _fail(exc) from exc
    _report(outcomes, json_output)


@cli.command("rules")
def list_rules() -> None:
    """List registered rules and their configuration keys."""
    table = Table(title="Registered rules")
    table.add_column("Key", no_wrap=True)
    table.add_column("Label")
    table.add_column("Description")
    for registration in RULES:
        spec = registration.spec
        table.add_row(spec.key, spec.label, spec.description)
    console.print(table)


if __name__ == "__main__":
    cli()
