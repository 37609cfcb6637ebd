# ContentSync Output Module
# Rich console output for sync results

from contentsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
