"""
Run-scoped state shared by every resolution call.

One RunContext is created per run and passed explicitly to the export map
builder, import analyzer and planner. It owns the parsed-module registry, the
export map cache and the run counters, so nothing lives in module globals.
"""

import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from barrel_breaker.code_intelligence.aliases import AliasTable
from barrel_breaker.code_intelligence.project import Project


@dataclass
class RunContext:
    """
    State for one barrel-breaker run.

    Attributes:
        alias_table: tsconfig aliases for the run
        project: Parsed modules, keyed by absolute path
        export_maps: Export map cache keyed by module path (never invalidated)
        bindings_updated: Individual import bindings moved to a new specifier
        statements_rewritten: Import statements replaced
        cancelled: Set when the run was interrupted
    """
    alias_table: AliasTable
    project: Optional[Project] = None
    export_maps: Dict[Path, dict] = field(default_factory=dict)
    bindings_updated: int = 0
    statements_rewritten: int = 0
    cancelled: bool = False

    def __post_init__(self):
        if self.project is None:
            self.project = Project(self.alias_table)

    def cancel(self, *_args) -> None:
        self.cancelled = True

    @contextmanager
    def interruptible(self):
        """
        Turn SIGINT into a cancellation flag for the duration of the block.

        The flag is checked between whole modules, so a file is never left
        half written. Outside the main thread the handler can't be installed
        and the block runs unchanged.
        """
        if threading.current_thread() is not threading.main_thread():
            yield self
            return

        previous = signal.signal(signal.SIGINT, self.cancel)
        try:
            yield self
        finally:
            signal.signal(signal.SIGINT, previous)
