"""Rich console logging for sync runs."""

import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape


class SyncLogger:
    """Rich console output for sync operations.

    Loggers are passed explicitly to the engine components. ``child()``
    returns a logger scoped to a plugin or source which shares the same
    console and log file.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        verbose: bool = False,
        name: Optional[str] = None,
        log_file: Optional[Path] = None,
    ):
        """Initialize logger.

        Args:
            console: Rich Console instance
            verbose: Enable debug output on the console
            name: Scope shown as a prefix on every message
            log_file: Optional plain-text file that mirrors every message
        """
        self.console = console or Console()
        self.verbose = verbose
        self.name = name
        self.log_file = Path(log_file).expanduser() if log_file else None
        self._lock = threading.Lock()

    def child(self, name: str) -> "SyncLogger":
        """Return a logger scoped to ``name``."""
        scoped = f"{self.name}:{name}" if self.name else name
        child = SyncLogger(self.console, verbose=self.verbose, name=scoped, log_file=self.log_file)
        child._lock = self._lock
        return child

    def debug(self, message: str) -> None:
        """Dim debug message, only shown when verbose."""
        if self.verbose:
            self.console.print(f"[dim]· {self._prefix()}{escape(message)}[/dim]")
        self._write("DEBUG", message)

    def info(self, message: str) -> None:
        """Blue info message."""
        self.console.print(f"[blue]ℹ[/blue] {self._prefix()}{escape(message)}")
        self._write("INFO", message)

    def success(self, message: str) -> None:
        """Green success message."""
        self.console.print(f"[green]✓[/green] {self._prefix()}{escape(message)}")
        self._write("INFO", message)

    def warning(self, message: str) -> None:
        """Yellow warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {self._prefix()}{escape(message)}")
        self._write("WARNING", message)

    def error(self, message: str) -> None:
        """Red error message."""
        self.console.print(f"[red]✗[/red] {self._prefix()}{escape(message)}")
        self._write("ERROR", message)

    def _prefix(self) -> str:
        if not self.name:
            return ""
        return f"[cyan]{escape(f'[{self.name}]')}[/cyan] "

    def _write(self, level: str, message: str) -> None:
        if self.log_file is None:
            return
        timestamp = datetime.now().isoformat(timespec="seconds")
        scope = f" [{self.name}]" if self.name else ""
        with self._lock:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(f"{timestamp} {level:<7}{scope} {message}\n")
