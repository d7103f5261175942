from __future__ import annotations

"""Repository commands."""

import json

import click

from debrelease.core.config import GlobalConfig
from debrelease.core.errors import ConfigurationError
from debrelease.plugins.deb.urls import construct_component_urls, parse_repository_location

# Click context settings to enable -h as alias for --help
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def create_repo_group(cli: click.Group) -> click.Group:
    """Create and return the repo command group.

    Args:
        cli: Parent CLI group to attach to

    Returns:
        The repo command group
    """

    @cli.group(context_settings=CONTEXT_SETTINGS)
    def repo() -> None:
        """Repository commands."""
        pass

    @repo.command("list")
    @click.option(
        "--format",
        "output_format",
        type=click.Choice(["table", "json"]),
        default="table",
        help="Output format",
    )
    @click.pass_context
    def repo_list(ctx: click.Context, output_format: str) -> None:
        """List configured repositories."""
        config: GlobalConfig = ctx.obj["config"]
        config_repos = config.repositories

        if output_format == "json":
            result = []
            for repo_config in config_repos:
                location = parse_repository_location(repo_config.url)
                result.append(
                    {
                        "repo_id": repo_config.id,
                        "name": repo_config.name,
                        "url": repo_config.url,
                        "enabled": repo_config.enabled,
                        "release": location.release,
                        "components": location.components,
                        "binary_arch": location.binary_arch,
                    }
                )
            click.echo(json.dumps(result, indent=2))
            return

        click.echo("Configured Repositories:")
        click.echo()

        if not config_repos:
            click.echo("  No repositories configured.")
            click.echo("\nAdd repositories to your config file.")
            return

        rows = []
        for repo_config in config_repos:
            location = parse_repository_location(repo_config.url)
            rows.append(
                {
                    "id": repo_config.id,
                    "enabled": "Yes" if repo_config.enabled else "No",
                    "release": location.release,
                    "components": ",".join(location.components),
                    "arch": location.binary_arch,
                }
            )

        col_widths = {
            "id": max(len("ID"), max(len(row["id"]) for row in rows)),
            "enabled": len("Enabled"),
            "release": max(len("Release"), max(len(row["release"]) for row in rows)),
            "arch": max(len("Arch"), max(len(row["arch"]) for row in rows)),
        }

        header = (
            f"{'ID':<{col_widths['id']}} {'Enabled':<{col_widths['enabled']}} "
            f"{'Release':<{col_widths['release']}} {'Arch':<{col_widths['arch']}} Components"
        )
        click.echo(header)
        click.echo("-" * len(header))
        for row in rows:
            click.echo(
                f"{row['id']:<{col_widths['id']}} {row['enabled']:<{col_widths['enabled']}} "
                f"{row['release']:<{col_widths['release']}} {row['arch']:<{col_widths['arch']}} "
                f"{row['components']}"
            )

        click.echo(f"\nTotal: {len(rows)} repository(ies)")

    @repo.command("components")
    @click.option("--repo-id", help="Configured repository ID")
    @click.option("--url", "registry_url", help="Registry URL")
    @click.pass_context
    def repo_components(ctx: click.Context, repo_id: str, registry_url: str) -> None:
        """Show the binary index URL of every component of a repository."""
        if bool(repo_id) == bool(registry_url):
            click.echo("Error: Exactly one of --repo-id or --url is required", err=True)
            ctx.exit(1)

        config: GlobalConfig = ctx.obj["config"]
        if repo_id:
            repo_config = config.get_repository(repo_id)
            if not repo_config:
                click.echo(f"Error: Repository '{repo_id}' not found in configuration", err=True)
                ctx.exit(1)
            registry_url = repo_config.url

        try:
            component_urls = construct_component_urls(registry_url)
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

        for component_url in component_urls:
            click.echo(component_url)

    return repo
