"""Report output for the jjval document validator."""

from .console_reporter import ConsoleReporter

__all__ = [
    "ConsoleReporter",
]
