"""Click CLI interface for the autopr tool."""

import json
import sys
import traceback
from typing import Tuple

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from autopr import __version__
from autopr.config import ConfigError, ConfigManager
from autopr.errors import AutoPRError
from autopr.integrations.git import DirtyWorkingTreeError, GitRepository
from autopr.integrations.github import GitHubIntegration
from autopr.integrations.jira import JiraIntegration
from autopr.models import Config
from autopr.utils.logger import enable_verbose_logging, get_logger
from autopr.workflows.publish import publish_change

logger = get_logger(__name__)
console = Console()

TOKEN_SETTINGS = ("GITHUB_TOKEN", "JIRA_TOKEN")


def build_integrations(config: Config) -> Tuple[GitRepository, JiraIntegration, GitHubIntegration]:
    """Concrete repository, tracker and code host for a run."""
    return (
        GitRepository(remote=config.git.remote),
        JiraIntegration(config.jira),
        GitHubIntegration(config.github),
    )


def mask_secret(value: str) -> str:
    """Hide all but the last four characters of a secret."""
    if not value:
        return value
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"


def _masked_config(config: Config) -> dict:
    data = config.model_dump(mode="json")
    for section in ("github", "jira"):
        if data[section].get("token"):
            data[section]["token"] = mask_secret(data[section]["token"])
    return data


@click.group(invoke_without_command=True)
@click.option(
    "--add-to-current-sprint", is_flag=True,
    help="Add a newly created ticket to the active sprint"
)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, add_to_current_sprint: bool, version: bool, verbose: bool) -> None:
    """autopr - turn the latest commit into a Jira ticket and a GitHub PR.

    Without a subcommand: creates a ticket unless the commit title already
    starts with one, prefixes the commit title with the ticket key,
    force-pushes the branch and opens a pull request.
    """
    if version:
        click.echo(f"autopr version {__version__}")
        sys.exit(0)

    if verbose:
        enable_verbose_logging()

    if ctx.invoked_subcommand is None:
        submit(add_to_current_sprint, verbose)


def check_tokens(config: Config) -> None:
    """Exit when an API token is not configured."""
    for name in config.missing_settings():
        if name in TOKEN_SETTINGS:
            click.echo(f"{name} env var must be set")
            sys.exit(1)


def submit(add_to_current_sprint: bool, verbose: bool) -> None:
    """Run the publish workflow and print the PR URL."""
    manager = ConfigManager()
    try:
        # Tokens are checked before git runs to find the project config
        check_tokens(manager.load_config(include_project=False))
        config = manager.load_config()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    missing = config.missing_settings(add_to_current_sprint)
    if missing:
        click.echo(f"{', '.join(missing)} env var(s) must be set")
        sys.exit(1)
    invalid = config.invalid_settings(add_to_current_sprint)
    if invalid:
        click.echo("\n".join(invalid))
        sys.exit(1)

    try:
        repository, tracker, code_host = build_integrations(config)
        result = publish_change(
            config,
            repository,
            tracker,
            code_host,
            add_to_current_sprint=add_to_current_sprint,
        )
    except DirtyWorkingTreeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        console.print("[yellow]Hint:[/yellow] Commit or stash your changes first")
        sys.exit(1)
    except AutoPRError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error:[/red] Unexpected error: {escape(str(e))}")
        if verbose:
            console.print(escape(traceback.format_exc()), style="dim")
        sys.exit(1)

    if result.issue:
        console.print(f"[green]✓[/green] Created ticket {result.issue.key}")
    click.echo(f"PR: {result.pull_request.url}")


@cli.command()
def init() -> None:
    """Create a default user configuration file."""
    try:
        config_path = ConfigManager().create_default_config()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print(f"[green]✓[/green] User configuration: {config_path}")
    console.print("\n[bold]Next steps:[/bold]")
    console.print("1. Export [cyan]GITHUB_TOKEN[/cyan] and [cyan]JIRA_TOKEN[/cyan]")
    console.print("2. Fill in the github and jira sections of the configuration")
    console.print("3. Commit a change and run [cyan]autopr[/cyan]")


@cli.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("show")
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["table", "yaml", "json"]), default="table",
    help="Output format (default: table)"
)
def config_show(output_format: str) -> None:
    """Show the effective configuration with tokens masked."""
    manager = ConfigManager()
    try:
        current_config = manager.load_config()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    config_dict = _masked_config(current_config)

    if output_format == "yaml":
        click.echo(yaml.safe_dump(config_dict, default_flow_style=False, sort_keys=False))
        return
    if output_format == "json":
        click.echo(json.dumps(config_dict, indent=2))
        return

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for section, values in config_dict.items():
        if isinstance(values, dict):
            for key, value in values.items():
                table.add_row(f"{section}.{key}", "" if value is None else str(value))
        else:
            table.add_row(section, str(values))
    console.print(table)

    for config_type, path in manager.list_config_files().items():
        console.print(f"[dim]{config_type.title()} config: {path or 'not found'}[/dim]")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
