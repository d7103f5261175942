from __future__ import annotations

"""Cache management commands."""

import time

import click

from debrelease.core.cache import CacheStats, ResultCache, collect_stats
from debrelease.core.config import GlobalConfig
from debrelease.core.storage import CacheStorage
from debrelease.plugins.deb.index import CACHE_SUBDIR

# Click context settings to enable -h as alias for --help
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _format_size(size_bytes: int) -> str:
    size_mb = size_bytes / (1024 * 1024)
    if size_mb >= 1024:
        return f"{size_mb / 1024:.2f} GB"
    if size_mb >= 1.0:
        return f"{size_mb:.2f} MB"
    return f"{size_bytes / 1024:.1f} KB"


def _format_age(age_hours: float) -> str:
    if age_hours < 1:
        return f"{age_hours * 60:.0f}m"
    if age_hours < 24:
        return f"{age_hours:.1f}h"
    return f"{age_hours / 24:.1f}d"


def _echo_stats(title: str, stats: CacheStats) -> None:
    click.echo(f"{title}:")
    if stats.total_files == 0:
        click.echo("  empty")
        return
    click.echo(f"  Files: {stats.total_files}")
    click.echo(f"  Size: {_format_size(stats.total_size_bytes)}")
    if stats.oldest_file_age_hours is not None:
        click.echo(f"  Oldest file: {stats.oldest_file_age_hours:.1f} hours ago")
    if stats.newest_file_age_hours is not None:
        click.echo(f"  Newest file: {stats.newest_file_age_hours:.1f} hours ago")


def create_cache_group(cli: click.Group) -> click.Group:
    """Create and return the cache command group.

    Args:
        cli: Parent CLI group to attach to

    Returns:
        The cache command group
    """

    @cli.group(context_settings=CONTEXT_SETTINGS)
    def cache() -> None:
        """Index and lookup cache management commands."""
        pass

    @cache.command("stats")
    @click.pass_context
    def cache_stats(ctx: click.Context) -> None:
        """Show cache statistics."""
        config: GlobalConfig = ctx.obj["config"]
        cache_path = config.cache.get_cache_path()

        click.echo(f"Cache directory: {cache_path}")
        if not cache_path.exists():
            click.echo("Status: Not created yet (no files cached)")
            return

        click.echo(f"Lookup cache: {'Enabled' if config.cache.enabled else 'Disabled'}")
        click.echo(f"Lookup TTL: {config.cache.ttl_minutes} minutes")
        click.echo(f"Compressions: {', '.join(config.cache.compressions)}")
        click.echo()

        storage = CacheStorage(cache_path)
        _echo_stats("Extracted indexes", collect_stats(storage.iter_files(CACHE_SUBDIR, "*.txt")))
        _echo_stats("Lookup results", ResultCache(cache_path / "memo").stats())

    @cache.command("list")
    @click.option("--limit", type=int, default=50, help="Limit number of files shown")
    @click.pass_context
    def cache_list(ctx: click.Context, limit: int) -> None:
        """List cached Packages indexes."""
        config: GlobalConfig = ctx.obj["config"]
        storage = CacheStorage(config.cache.get_cache_path())

        cache_files = sorted(
            storage.iter_files(CACHE_SUBDIR, "*.txt"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not cache_files:
            click.echo("Cache is empty")
            return

        click.echo(f"{'URL hash (SHA256)':<66} {'Size':>12} {'Age':>8}")
        click.echo("-" * 88)

        now = time.time()
        for cache_file in cache_files[:limit]:
            stat = cache_file.stat()
            age_hours = (now - stat.st_mtime) / 3600
            click.echo(
                f"{cache_file.stem:<66} {_format_size(stat.st_size):>12} {_format_age(age_hours):>8}"
            )

        if len(cache_files) > limit:
            click.echo()
            click.echo(f"Showing {limit} of {len(cache_files)} files. Use --limit to show more.")

    @cache.command("clear")
    @click.option("--memo-only", is_flag=True, help="Only clear memoized lookup results")
    @click.option("--force", is_flag=True, help="Skip confirmation prompt")
    @click.pass_context
    def cache_clear(ctx: click.Context, memo_only: bool, force: bool) -> None:
        """Clear cached indexes and lookup results."""
        config: GlobalConfig = ctx.obj["config"]
        cache_path = config.cache.get_cache_path()

        if not cache_path.exists():
            click.echo(f"Cache directory does not exist: {cache_path}")
            return

        storage = CacheStorage(cache_path)
        result_cache = ResultCache(cache_path / "memo")
        index_files = [] if memo_only else storage.iter_files(CACHE_SUBDIR)
        memo_entries = result_cache.entries()

        total = len(index_files) + len(memo_entries)
        if total == 0:
            click.echo("Cache is already empty")
            return

        if not force:
            click.echo(f"About to delete {total} cached file(s)")
            if not click.confirm("Continue?"):
                click.echo("Aborted")
                return

        for index_file in index_files:
            storage.remove(index_file)
        memo_deleted = result_cache.clear()

        click.echo()
        click.echo("✓ Cache cleared successfully!")
        click.echo(f"  Index files deleted: {len(index_files)}")
        click.echo(f"  Lookup results deleted: {memo_deleted}")

    return cache
