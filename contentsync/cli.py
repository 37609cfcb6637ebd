"""Click-based CLI for ContentSync."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError
from rich.markup import escape

from contentsync import __version__
from contentsync.config import (
    ContentConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from contentsync.logger import SyncLogger
from contentsync.output import Console, create_console
from contentsync.sync import ContentSync


def _load(config_path: Optional[Path], console: Console) -> ContentConfig:
    """Load configuration or exit with an error message."""
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        console.print_error(str(e))
        sys.exit(1)
    except ValidationError as e:
        console.print_error(f"Invalid configuration:\n{e}")
        sys.exit(1)
    except yaml.YAMLError as e:
        console.print_error(f"Invalid YAML syntax: {e}")
        sys.exit(1)


config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to config file (default: ./contentsync.yaml or $CONTENTSYNC_CONFIG)",
)


@click.group()
@click.version_option(version=__version__, prog_name="contentsync")
def cli() -> None:
    """ContentSync - Content synchronization from remote sources.

    Fetches documents and media from configured sources into a local
    download directory. Failed runs are rolled back from backups.

    \b
    Workflow:
      contentsync config init      Create contentsync.yaml
      contentsync config validate  Check it
      contentsync sync             Download everything
    """
    pass


@cli.command()
@config_option
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option("--source", "-s", "source_ids", multiple=True, help="Only sync these source ids")
def sync(config_path: Optional[Path], verbose: bool, source_ids: tuple[str, ...]) -> None:
    """Synchronize content from all configured sources.

    Documents are written as JSON and media files are downloaded next to
    them. If any source fails, every source is restored from backup.
    """
    console = create_console(verbose=verbose)
    config = _load(config_path, console)
    console = create_console(verbose=verbose or config.output.verbose, colored=config.output.colored)

    logger = SyncLogger(console.rich, verbose=console.verbose, log_file=config.output.log_file)
    engine = ContentSync(config, logger=logger)

    sources = engine.sources
    if source_ids:
        unknown = sorted(set(source_ids) - {s.id for s in engine.sources})
        if unknown:
            console.print_error(f"Unknown source(s): {', '.join(unknown)}")
            sys.exit(1)
        sources = [s for s in engine.sources if s.id in source_ids]

    try:
        result = engine.start(sources)
    except KeyboardInterrupt:
        engine.abort()
        console.print_warning("Sync interrupted")
        sys.exit(130)

    console.print_sync_result(result)
    if not result.success:
        sys.exit(1)


@cli.command()
@config_option
@click.option("--temp/--no-temp", default=True, help="Clear temp files")
@click.option("--backups/--no-backups", default=True, help="Clear backups")
@click.option("--downloads/--no-downloads", default=False, help="Clear downloaded files (keeps config.keep)")
@click.option("--source", "-s", "source_ids", multiple=True, help="Only clear these source ids")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def clear(
    config_path: Optional[Path],
    temp: bool,
    backups: bool,
    downloads: bool,
    source_ids: tuple[str, ...],
    yes: bool,
) -> None:
    """Clear temp, backup and downloaded files."""
    console = create_console()
    config = _load(config_path, console)
    engine = ContentSync(config, logger=SyncLogger(console.rich))

    if downloads and not yes and not console.confirm(f"Delete downloads in {engine.get_download_path()}?"):
        console.print_warning("Clear cancelled")
        return

    engine.clear(list(source_ids) or None, temp=temp, backups=backups, downloads=downloads)
    console.print_success("Cleared")


# ============================================================================
# Configuration Commands
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration file commands."""
    pass


@config.command("init")
@config_option
def config_init(config_path: Optional[Path]) -> None:
    """Create a default configuration file."""
    console = create_console()
    path, created = ensure_config_exists(config_path)
    if created:
        console.print_success(f"Created configuration: {path}")
    else:
        console.print_warning(f"Configuration already exists: {path}")


@config.command("validate")
@config_option
def config_validate(config_path: Optional[Path]) -> None:
    """Validate the configuration file."""
    console = create_console()
    path = config_path or get_config_path()
    is_valid, errors = validate_config_file(path)

    if is_valid:
        console.print_success(f"Configuration is valid: {path}")
        return

    console.print_error(f"Configuration is invalid: {path}")
    for error in errors:
        console.print(f"  [red]•[/red] {escape(error)}")
    sys.exit(1)


@config.command("show")
@config_option
def config_show(config_path: Optional[Path]) -> None:
    """Show the effective configuration."""
    console = create_console()
    path = config_path or get_config_path()
    config = _load(path, console)

    console.print_config_summary(str(path), config)
    console.print_sources_list(config)


if __name__ == "__main__":
    cli()
