"""
Main CLI entry point for debrelease.

This module provides the Click-based command-line interface for debrelease.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from debrelease import __version__
from debrelease.cli.cache_commands import create_cache_group
from debrelease.cli.repo_commands import create_repo_group
from debrelease.core.config import (
    DEFAULT_REGISTRY_URL,
    GlobalConfig,
    create_example_config,
    load_config,
)
from debrelease.core.errors import ConfigurationError, IndexUnavailableError
from debrelease.core.output import LookupOutputter, OutputLevel
from debrelease.plugins.deb import DebDatasource

# Click context settings to enable -h as alias for --help
CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: /etc/debrelease/config.yaml, or $DEBRELEASE_CONFIG)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Only print results and errors")
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: bool, quiet: bool) -> None:
    """debrelease - Debian repository release lookup.

    Finds the published versions of a package in APT repositories.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)

    if verbose:
        level = OutputLevel.VERBOSE
    elif quiet:
        level = OutputLevel.QUIET
    else:
        level = OutputLevel.NORMAL
    ctx.obj["output_level"] = level

    try:
        ctx.obj["config"] = load_config(config)
    except FileNotFoundError:
        if config:
            click.echo(f"Error: Configuration file not found: {config}", err=True)
            ctx.exit(1)
        else:
            ctx.obj["config"] = GlobalConfig()
    except ValueError as e:
        # YAML syntax error or validation error
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    if verbose:
        click.echo(
            f"Loaded configuration: {len(ctx.obj['config'].repositories)} repositories", err=True
        )


@cli.command()
@click.argument("package_name")
@click.option("--url", "registry_url", help="Registry URL (e.g. 'https://deb.debian.org/debian?release=bookworm&components=main&binaryArch=amd64')")
@click.option("--repo-id", help="Look up in a configured repository")
@click.option("--all", "all_repos", is_flag=True, help="Look up in all enabled repositories")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]),
              default="table", help="Output format")
@click.pass_context
def lookup(
    ctx: click.Context,
    package_name: str,
    registry_url: Optional[str],
    repo_id: Optional[str],
    all_repos: bool,
    output_format: str,
) -> None:
    """Look up the published versions of PACKAGE_NAME.

    Without --url, --repo-id or --all, the Debian stable archive is queried.

    Examples:
      debrelease lookup nginx
      debrelease lookup nginx --repo-id ubuntu-jammy
      debrelease lookup curl --url "https://deb.debian.org/debian?suite=stable&components=main&binaryArch=arm64"
      debrelease lookup curl --all --format json
    """
    if sum([bool(registry_url), bool(repo_id), all_repos]) > 1:
        click.echo("Error: Cannot use multiple selection methods (--url, --repo-id, --all)", err=True)
        ctx.exit(1)

    config: GlobalConfig = ctx.obj["config"]
    level = ctx.obj["output_level"]
    if output_format == "json":
        level = OutputLevel.QUIET
    out = LookupOutputter(level)

    if all_repos:
        targets = [(r.id, r) for r in config.get_enabled_repositories()]
        if not targets:
            out.error("No enabled repositories found")
            ctx.exit(1)
    elif repo_id:
        repo_config = config.get_repository(repo_id)
        if not repo_config:
            out.error(f"Repository '{repo_id}' not found in configuration")
            ctx.exit(1)
        targets = [(repo_config.id, repo_config)]
    else:
        url = registry_url or DEFAULT_REGISTRY_URL
        targets = [(url, None)]

    results = {}
    failed = False
    for key, repo_config in targets:
        url = repo_config.url if repo_config else key
        datasource = DebDatasource.from_config(config, repo_config)

        if repo_config:
            out.header(package_name, url, repository=repo_config.display_name)
        else:
            out.header(package_name, url)
        try:
            result, outcomes = datasource.lookup(url, package_name)
        except (ConfigurationError, IndexUnavailableError) as e:
            out.error(str(e))
            failed = True
            continue

        out.components(outcomes)
        skipped = sum(1 for outcome in outcomes if outcome.status == "failed")
        if skipped:
            out.warning(f"{skipped} of {len(outcomes)} component(s) skipped (use -v for details)")
        results[key] = result
        if output_format == "table":
            out.result(package_name, result)
            out.info("")

    if output_format == "json":
        click.echo(LookupOutputter.to_json(results))

    if failed or not any(result is not None for result in results.values()):
        ctx.exit(1)


@cli.command()
@click.option("--example-config", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Also write an example configuration file to this path")
@click.pass_context
def init(ctx: click.Context, example_config: Optional[Path]) -> None:
    """Initialize debrelease (create the cache directory)."""
    config: GlobalConfig = ctx.obj["config"]
    cache_path = config.cache.get_cache_path()

    if not cache_path.exists():
        cache_path.mkdir(parents=True, exist_ok=True)
        click.echo(f"  ✓ Created: {cache_path}")
    else:
        click.echo(f"  - Already exists: {cache_path}")

    if example_config:
        if example_config.exists():
            click.echo(f"Error: {example_config} already exists", err=True)
            ctx.exit(1)
        create_example_config(example_config)
        click.echo(f"  ✓ Wrote example configuration: {example_config}")

    click.echo("\n✓ debrelease initialized successfully!")


create_repo_group(cli)
create_cache_group(cli)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
