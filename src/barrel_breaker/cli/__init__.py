"""
CLI module for barrel-breaker - handles command-line interface and terminal UI.
"""

from barrel_breaker.cli import ui
from barrel_breaker.cli.commands import main

__all__ = ["main", "ui"]
