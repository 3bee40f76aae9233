"""User interface components for hwaware."""

from hwaware.ui.cli import cli
from hwaware.ui.console import ReportConsole

__all__ = [
    "cli",
    "ReportConsole",
]
