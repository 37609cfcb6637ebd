# ContentSync Console Output
# Rich-based console output for user-friendly display

from typing import Optional

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from contentsync.config.schema import ContentConfig
from contentsync.sync.engine import SourceSyncResult, SyncResult


def format_bytes(size: int) -> str:
    """Human readable byte count."""
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for sync runs.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True, console: Optional[RichConsole] = None):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
            console: Existing Rich console to write to.
        """
        self.verbose = verbose
        self._console = console or RichConsole(no_color=not colored)

    @property
    def rich(self) -> RichConsole:
        """Underlying Rich console, shared with the sync logger."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{escape(message)}[/green]")

    def print_sync_result(self, result: SyncResult) -> None:
        """
        Print sync result summary.

        Args:
            result: Sync result to display.
        """
        self._console.print()

        for source_id, source_result in result.sources.items():
            self._print_source_result(source_id, source_result)

        self._console.print()

        synced = sum(1 for r in result.sources.values() if r.success)
        documents = sum(r.documents for r in result.sources.values())
        downloaded = sum(r.media.downloaded for r in result.sources.values() if r.media)
        cached = sum(r.media.cached for r in result.sources.values() if r.media)
        transferred = sum(r.media.bytes_transferred for r in result.sources.values() if r.media)

        lines = [
            f"Sources: {synced}/{len(result.sources)}",
            f"Documents: {documents}",
            f"Media: {downloaded} downloaded, {cached} cached ({format_bytes(transferred)})",
        ]
        if result.restored:
            lines.append(f"Restored from backup: {', '.join(result.restored)}")
        if result.plugin_errors:
            lines.append(f"Plugin errors: {len(result.plugin_errors)}")

        if result.success:
            status = "[green]Sync completed[/green]"
            border = "green" if not result.has_issues else "yellow"
        elif result.aborted:
            status = "[yellow]Sync aborted[/yellow]"
            border = "yellow"
        else:
            status = "[red]Sync failed[/red]"
            border = "red"

        self._console.print(Panel("\n".join([status, *lines]), title="Summary", border_style=border))

    def _print_source_result(self, source_id: str, result: SourceSyncResult) -> None:
        """Print result for a single source."""
        if not result.success:
            self._console.print(f"[red]✗[/red] [bold]{source_id}[/bold] - {escape(str(result.error))}")
            return

        media = result.media
        media_text = f", {media.downloaded} downloaded, {media.cached} cached" if media else ""
        self._console.print(f"[green]✓[/green] [bold]{source_id}[/bold] - {result.documents} documents{media_text}")

        if media and media.failed:
            for error in media.failed:
                self._console.print(f"    [red]✗[/red] {escape(error.url)}: {escape(error.message)}")

        if self.verbose:
            for path in result.data_files:
                self._console.print(f"    [dim]{path}[/dim]")

    def print_sources_list(self, config: ContentConfig) -> None:
        """Print configured sources as a table."""
        table = Table(show_header=True, header_style="bold")
        table.add_column("Source")
        table.add_column("Type")
        table.add_column("Target", style="dim")

        for source in config.sources:
            if source.type == "json":
                target = f"{len(source.files)} file(s)"
            else:
                target = source.base_url
            table.add_row(source.id, source.type, target)

        self._console.print(table)

    def print_config_summary(self, config_path: str, config: ContentConfig) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\n"
                f"Download path: {config.download_path}\n"
                f"Sources: {len(config.sources)}",
                title="ContentSync Configuration",
                border_style="blue",
            )
        )

    def confirm(self, message: str, default: bool = False) -> bool:
        """
        Ask for confirmation.

        Args:
            message: Confirmation message.
            default: Default value if user just presses enter.

        Returns:
            True if confirmed.
        """
        suffix = " [Y/n]" if default else " [y/N]"
        response = self._console.input(escape(f"{message}{suffix}: ")).strip().lower()

        if not response:
            return default

        return response in ("y", "yes")


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
